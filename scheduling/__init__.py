"""
Scheduling Services Module

Core business logic for veterinary appointment scheduling:
- Overlap detection (overlap.py)
- Clinic opening hours (opening_hours.py)
- Slot generation (slots.py)
- Booking and status transitions (scheduler.py)
- Vet agenda aggregation (agenda.py)
- Calendar grid projection for week/month views (grid.py)
"""
