# Ranking weights
PURCHASE_WEIGHT = 2  # popularity = PURCHASE_WEIGHT * purchases + views

# Cache payload shape; bump when the cached item format changes
TRENDING_CACHE_SHAPE = "ranked_v1"
