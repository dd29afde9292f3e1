"""
FastAPI REST Endpoints
======================

HTTP access to the render pipeline.

Endpoints:
- GET /api/bitmap/{slug}: Device bitmap for a recipe
- GET /api/bitmap/mixup/{mixup_id}: Device bitmap for a mixup
- GET /api/recipes: Recipe catalog
- GET /api/recipes/{slug}/render: PNG or SVG preview
- GET /health: Health check endpoint
"""
