"""
dex - Venue price model (AMM pools, CLOB books) and contract adapters.
"""
