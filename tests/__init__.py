"""
Test suite for the Ketpa Appointments API.

Contains unit tests for the slot ledger and email formatting, and API tests
for accounts and the booking workflow.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
