"""
Subscriptions Domain

Administrative bulk pause/reactivation and subscriber self-service.

Structure:
- batch.py                 # Bounded per-row execution (one session per subscription)
- repository.py            # Subscription and admin pause record queries
- pause_service.py         # Bulk admin pause
- reactivation_service.py  # Admin pause reactivation
- self_service.py          # Subscriber pause/reactivate, admin pause status
- admin_router.py          # /admin/subscriptions endpoints
- router.py                # /subscriptions endpoints
"""
