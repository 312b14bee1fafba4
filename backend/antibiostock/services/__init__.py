"""
AntibioStock Backend: Services Layer
=====================================

Service Inventory:
    - StockService:        antibiotic listings, low-stock view, set/subtract stock
    - OutflowService:      all-or-nothing outflow registration
    - AntibiogramService:  antibiogram listings and replace-all assignment

Services are stateless singletons; each call receives the request's
AsyncSession and owns the transaction it opens on it.
"""
