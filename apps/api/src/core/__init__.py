"""Core application components.

This module provides the foundational components for the Xero ETL API:
- Datastore access via the Supabase service-role client
- Application settings and configuration
- Process-wide logging setup
"""
