"""
Product Catalog - demonstration product service

Consists of:
- A REST service listing products from a relational store
- A request-pipeline player that animates a request travelling
  client -> proxy -> service -> database while the real call runs
"""

__version__ = "0.1.0"
