"""Xero integration domain.

- OAuth 2.0 connection lifecycle with encrypted refresh token storage
- Server-side access token refresh
- Daily ETL of bank transactions, accounts and ProfitAndLoss into cached metrics
"""
