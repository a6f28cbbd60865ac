"""
Delivery app: hands paid plans to customers.

AUTOMATIC plans get a StockItem, MANUAL plans get a support ticket for
staff to fulfil by hand.
"""
