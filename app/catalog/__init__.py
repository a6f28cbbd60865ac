"""
Catalog app: products, plans and the pool of sellable stock.

Plans are read-mostly reference data. StockItems are one-time-use secrets
consumed by automatic delivery; once used they are never recycled.
"""
