"""
Publishing constants — product tags, metafield namespaces, push defaults.
"""

# Tags applied to every product pushed from the command center
PRODUCT_TAGS: list[str] = ["command-center", "bulk-push"]

# Metafield namespaces
METAFIELD_NAMESPACE: str = "command_center"
METAFIELD_NAMESPACE_COMPETITOR: str = "competitor"
METAFIELD_NAMESPACE_INVENTORY: str = "inventory"

# competitor name -> metafield key under METAFIELD_NAMESPACE_COMPETITOR
COMPETITOR_METAFIELD_KEYS: dict[str, str] = {
    "amazon": "amazon_price",
    "costco": "costco_price",
    "ebay": "ebay_price",
    "sams": "sams_price",
}

# Dropshipped stock is not counted; Shopify gets a nominal quantity
DEFAULT_INVENTORY_QUANTITY: int = 999

DEFAULT_PRODUCT_TYPE: str = "General"

# Local status -> Shopify product status
SHOPIFY_STATUS_MAP: dict[str, str] = {
    "active": "active",
    "paused": "draft",
    "draft": "draft",
    "removed": "archived",
}

# Shopify product status -> local status (webhook direction)
LOCAL_STATUS_MAP: dict[str, str] = {
    "archived": "paused",
    "draft": "draft",
}
