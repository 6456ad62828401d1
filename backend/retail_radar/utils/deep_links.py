"""
Retailer deep links.

Most retailers don't expose stable product URLs without an API key, so
links point at the retailer's search page scoped to the product name.
"""
import re
from typing import Dict, Optional
from urllib.parse import quote

from retail_radar.config import settings

# search_url uses {QUERY}; store_locator may use {LAT}/{LNG}
RETAILER_LINKS: Dict[str, Dict[str, Optional[str]]] = {
    "homedepot": {
        "name": "Home Depot",
        "search_url": "https://www.homedepot.com/s/{QUERY}",
        "affiliate_param": "cm_mmc",
        "affiliate_tag": "RetailRadar-_-partner",
        "store_locator": "https://www.homedepot.com/l/search/{LAT}/{LNG}/",
        "homepage": "https://www.homedepot.com",
    },
    "lowes": {
        "name": "Lowe's",
        "search_url": "https://www.lowes.com/search?searchTerm={QUERY}",
        "affiliate_param": "cm_mmc",
        "affiliate_tag": "RetailRadar-_-partner",
        "store_locator": "https://www.lowes.com/store",
        "homepage": "https://www.lowes.com",
    },
    "target": {
        "name": "Target",
        "search_url": "https://www.target.com/s?searchTerm={QUERY}",
        "affiliate_param": "afid",
        "affiliate_tag": "RetailRadar",
        "store_locator": "https://www.target.com/store-locator/find-stores",
        "homepage": "https://www.target.com",
    },
    "walmart": {
        "name": "Walmart",
        "search_url": "https://www.walmart.com/search?q={QUERY}",
        "affiliate_param": "affiliates_ad_id",
        "affiliate_tag": "RetailRadar",
        "store_locator": "https://www.walmart.com/store/finder",
        "homepage": "https://www.walmart.com",
    },
    "bestbuy": {
        "name": "Best Buy",
        "search_url": "https://www.bestbuy.com/site/searchpage.jsp?st={QUERY}",
        "affiliate_param": "ref",
        "affiliate_tag": "RetailRadar",
        "store_locator": "https://www.bestbuy.com/site/store-locator",
        "homepage": "https://www.bestbuy.com",
    },
    "cvs": {
        "name": "CVS Pharmacy",
        "search_url": "https://www.cvs.com/search?searchTerm={QUERY}",
        "affiliate_param": "cid",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.cvs.com",
    },
    "walgreens": {
        "name": "Walgreens",
        "search_url": "https://www.walgreens.com/search/results.jsp?Ntt={QUERY}",
        "affiliate_param": "ext",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.walgreens.com",
    },
    "acehardware": {
        "name": "Ace Hardware",
        "search_url": "https://www.acehardware.com/search?query={QUERY}",
        "affiliate_param": "utm_source",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.acehardware.com",
    },
    "staples": {
        "name": "Staples",
        "search_url": "https://www.staples.com/{QUERY}/directory_{QUERY}",
        "affiliate_param": "utm_source",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.staples.com",
    },
    "ikea": {
        "name": "IKEA",
        "search_url": "https://www.ikea.com/us/en/search/?q={QUERY}",
        "affiliate_param": "utm_source",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.ikea.com/us/en/",
    },
    "costco": {
        "name": "Costco",
        "search_url": "https://www.costco.com/CatalogSearch?dept=All&keyword={QUERY}",
        "affiliate_param": "utm_source",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.costco.com",
    },
    "wholefoods": {
        "name": "Whole Foods",
        "search_url": "https://www.wholefoodsmarket.com/search?text={QUERY}",
        "affiliate_param": "utm_source",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.wholefoodsmarket.com",
    },
    "traderjoes": {
        "name": "Trader Joe's",
        "search_url": "https://www.traderjoes.com/home/search?q={QUERY}&global=yes",
        "affiliate_param": "utm_source",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.traderjoes.com",
    },
    "dollargeneral": {
        "name": "Dollar General",
        "search_url": "https://www.dollargeneral.com/search?q={QUERY}",
        "affiliate_param": "utm_source",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.dollargeneral.com",
    },
    "menards": {
        "name": "Menards",
        "search_url": "https://www.menards.com/main/search.html?search={QUERY}",
        "affiliate_param": "utm_source",
        "affiliate_tag": "RetailRadar",
        "store_locator": None,
        "homepage": "https://www.menards.com",
    },
}

# same unreserved set as encodeURIComponent
URI_SAFE = "!'()*"
UTM_PARAMS = "utm_medium=referral&utm_campaign=retail-radar"


def _affiliate_tag(retailer_key: str, retailer: dict) -> Optional[str]:
    return settings.AFFILIATE_TAGS.get(retailer_key) or retailer.get("affiliate_tag")


def _append_param(url: str, param: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{param}"


def generate_product_url(
    retailer_key: str,
    product_name: str,
    brand: Optional[str] = None,
    include_affiliate: bool = True,
) -> Optional[str]:
    """
    Search URL for a product at a retailer, or None if the retailer is unknown.
    The brand is prepended unless the name already contains it.
    """
    retailer = RETAILER_LINKS.get(retailer_key)
    if not retailer:
        return None

    search_query = product_name
    if brand and brand.lower() not in product_name.lower():
        search_query = f"{brand} {product_name}"

    url = retailer["search_url"].replace("{QUERY}", quote(search_query, safe=URI_SAFE))

    tag = _affiliate_tag(retailer_key, retailer)
    if include_affiliate and retailer.get("affiliate_param") and tag:
        url = _append_param(url, f"{retailer['affiliate_param']}={quote(tag, safe=URI_SAFE)}")

    return _append_param(url, UTM_PARAMS)


def generate_store_url(retailer_key: str, lat: float, lng: float) -> Optional[str]:
    retailer = RETAILER_LINKS.get(retailer_key)
    if not retailer:
        return None
    locator = retailer.get("store_locator")
    if not locator:
        return retailer.get("homepage")
    return locator.replace("{LAT}", str(lat)).replace("{LNG}", str(lng))


def _letters_only(value: str) -> str:
    return re.sub(r"[^a-z]", "", value.lower())


def brand_to_key(brand: Optional[str]) -> Optional[str]:
    """Map a display brand ("Lowe's", "Home Depot") to its retailer key."""
    if not brand:
        return None
    key = _letters_only(brand)
    if key in RETAILER_LINKS:
        return key
    for retailer_key, retailer in RETAILER_LINKS.items():
        if _letters_only(retailer["name"]) == key:
            return retailer_key
    return None
