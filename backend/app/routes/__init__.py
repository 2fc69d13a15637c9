# Routes package init
"""
Vistoria Naval API — API Routes Package
=========================================

What:  HTTP route handlers that accept requests and return responses.
How:   One module per resource; handlers resolve the caller, call a service,
       write the audit entry and shape the response.

Route Inventory:
    - auth.py:          /api/auth              login, me, password flows, user admin
    - usuarios.py:      /api/usuarios          user CRUD (admin)
    - clientes.py:      /api/clientes          clients, document lookup
    - embarcacoes.py:   /api/embarcacoes       vessels
    - locais.py:        /api/locais            inspection locations
    - seguradoras.py:   /api/seguradoras       insurers and allowed vessel types
    - tipos_foto.py:    /api/tipos-foto-checklist
    - vistorias.py:     /api/vistorias         inspection CRUD
    - vistoriador.py:   /api/vistoriador       inspector app endpoints
    - checklists.py:    /api/checklists        templates and inspection items
    - fotos.py:         /api/fotos             upload, streaming, deletion
    - cep.py:           /api/cep               ViaCEP lookups (no auth)
    - laudos.py:        /api/laudos, /api/configuracoes-laudo
    - pagamentos.py:    /api/pagamentos        inspector payment batches
    - dashboard.py:     /api/dashboard         monthly statistics
    - auditoria.py:     /api/auditoria         audit trail
    - health.py:        /health

Routes stay THIN: business rules live in services so they can be tested
without HTTP.
"""
