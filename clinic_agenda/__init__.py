"""
Clinic agenda backend.

Patients, their medical history, the appointment calendar and the users who
operate the clinic, stored either in a local key-value store or in Firestore.
"""
__version__ = "1.0.0"
