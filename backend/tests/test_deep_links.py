from retail_radar.config import settings
from retail_radar.utils.deep_links import brand_to_key, generate_product_url, generate_store_url


def test_product_url_prepends_brand_and_tags():
    url = generate_product_url("homedepot", "20V Drill", brand="DeWalt")
    assert url.startswith("https://www.homedepot.com/s/DeWalt%2020V%20Drill?")
    assert "cm_mmc=RetailRadar-_-partner" in url
    assert url.endswith("utm_medium=referral&utm_campaign=retail-radar")


def test_product_url_skips_brand_already_in_name():
    url = generate_product_url("lowes", "DeWalt Cordless Drill", brand="DeWalt")
    assert "searchTerm=DeWalt%20Cordless%20Drill&" in url
    assert "DeWalt%20DeWalt" not in url


def test_product_url_without_affiliate():
    url = generate_product_url("target", "Lamp", include_affiliate=False)
    assert "afid=" not in url
    assert url == "https://www.target.com/s?searchTerm=Lamp&utm_medium=referral&utm_campaign=retail-radar"


def test_affiliate_override_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "AFFILIATE_TAGS", {"target": "my-tag"})
    url = generate_product_url("target", "Lamp")
    assert "afid=my-tag" in url


def test_unknown_retailer():
    assert generate_product_url("nowhere", "Lamp") is None
    assert generate_store_url("nowhere", 1, 2) is None


def test_store_url_uses_locator_then_homepage():
    assert generate_store_url("homedepot", 40.5, -73.9) == "https://www.homedepot.com/l/search/40.5/-73.9/"
    assert generate_store_url("cvs", 40.5, -73.9) == "https://www.cvs.com"


def test_brand_to_key():
    assert brand_to_key("Home Depot") == "homedepot"
    assert brand_to_key("Lowe's") == "lowes"
    assert brand_to_key("Unknown Mart") is None
    assert brand_to_key(None) is None


def test_product_url_leaves_uri_marks_unescaped():
    url = generate_product_url("target", "Men's Jacket (L)*!", include_affiliate=False)
    assert url.startswith("https://www.target.com/s?searchTerm=Men's%20Jacket%20(L)*!&")
