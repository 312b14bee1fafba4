"""
AntibioStock Backend: API Routes Package
=========================================

Route Inventory (all under /api):
    - antibiotics.py:   GET  /antibioticos
                        PUT  /antibioticos/{codigo}
                        POST /antibioticos/{codigo}/restar
                        GET  /alerts/low-stock
    - antibiograms.py:  GET  /antibiogramas
                        GET  /antibiogramas/{id}/antibioticos
                        GET  /antibiogramas/{id}/antibioticos_detalle
                        POST /antibiogramas/{id}/antibioticos
    - outflows.py:      POST /salidas
    - health.py:        GET  /health, GET /dbcheck

Routes stay thin: parse the request, call a service, wrap the result.
"""
