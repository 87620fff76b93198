"""
Ketpa Appointments API

FastAPI backend for booking veterinary clinic appointments: accounts and
pet profiles, slot booking and cancellation against each doctor's ledger,
and confirmation emails with an "Add to Calendar" link.
"""

__version__ = "1.0.0"
