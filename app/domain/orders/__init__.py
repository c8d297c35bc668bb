"""
Orders Domain

Checkout turns the cart into an order, reserving stock in the same commit.
Fulfilment (confirm, process, ship, deliver) is admin-driven; payment and
refunds go through Stripe.
"""
