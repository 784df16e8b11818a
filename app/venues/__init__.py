"""
Venues application.

Bars and restaurants that show matches. A venue carries a plan and feature
flags (see payments.models.BillableSubject) that change when its owner's
subscription changes.
"""
