"""Auction core: pricing, ledger, settlement, storage"""
