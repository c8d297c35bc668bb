"""Catalog Domain - products, prices and stock levels"""
