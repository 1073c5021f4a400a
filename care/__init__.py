"""Care coordination application.

Bed inventory, the inpatient waiting queue, bed allocation and the
patient medical-history timeline, with the API routes the front-end calls.
"""
