'''
Food ledger backend: student food-account balances derived from an append-only payment ledger.

The ASGI application lives in `food_ledger.main:app`.
'''
