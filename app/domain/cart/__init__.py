"""Cart Domain - one active cart per user, priced at the moment items are added"""
