"""Business domains: catalog, cart, orders, doctors and appointments"""
