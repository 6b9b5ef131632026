"""
Claim submission and review for academic centers.

Lecturers submit claims, the coordinator of their center approves or rejects
them, and the registry administers centers and users.
"""
