"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

Jobs Domain:
- jobs.py           : Job CRUD, duplicate claim check, claim text parsing
- dashboard.py      : Companies and dashboard stats
- photos.py         : Job photo upload/list/label/delete (S3)
- email.py          : Job completion email

Forms Domain:
- forms.py          : Form templates, auto-fill, submissions, submission PDFs
- admin_forms.py    : PDF template files, variable mappings, schema view

Other:
- auth_routes.py    : Login/logout and user management (/api/auth/*)
- chat.py           : Socket.IO chat/presence events and /api/chat/*
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
