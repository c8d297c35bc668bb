"""
Appointments Domain

Booking against doctor availability, conflict detection, rescheduling with
Zoom meeting updates, and the audited admin status override.
"""
