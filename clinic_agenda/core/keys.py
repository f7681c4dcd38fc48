"""
Storage keys of the local backend - one per collection, one per id counter.
"""

PATIENTS_KEY = "patients"
MEDICAL_HISTORY_KEY = "medical_history"
APPOINTMENTS_KEY = "appointments"
USERS_KEY = "users"
CURRENT_USER_KEY = "current_user"
SCHEMA_VERSION_KEY = "schema_version"

NEXT_PATIENT_ID_KEY = "next_patient_id"
NEXT_MEDICAL_ENTRY_ID_KEY = "next_medical_entry_id"
NEXT_APPOINTMENT_ID_KEY = "next_appointment_id"
NEXT_USER_ID_KEY = "next_user_id"
