"""
Orders app: orders, order lines, carts and order notifications.
"""
