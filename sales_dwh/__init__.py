"""
Sales Data Warehouse

Medallion (bronze/silver/gold) consolidation of CRM and ERP sales extracts
into a star schema.
"""

__version__ = "1.0.0"
