"""
Scheduling Domain

Delivery cadence policies, delivery date generation and pause eligibility.

Structure:
- calendar.py     # Pure date generation and next-delivery calculation
- eligibility.py  # Pause cutoff rules and status transitions
- repository.py   # Policy and audit queries
- service.py      # Policy administration, previews
- router.py       # /admin/delivery-schedule endpoints
"""
