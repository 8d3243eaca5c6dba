"""
Authentication models shared by every principal type.

A principal is either a Patient or a Doctor. Both tables implement the
Principal mixin so the credential check and token issuing never need to know
which one they were handed.
"""
import enum

class UserRole(str, enum.Enum):
    """Role discriminator carried in session tokens and supplied at login"""
    PATIENT = "patient"
    DOCTOR = "doctor"

class Principal:
    """
    Mixin for models that can authenticate.

    Implemented by exactly two models: Patient and Doctor. Implementers must
    define `id`, `email` and `password_hash` columns and a `role` class attribute
    holding their UserRole.
    """

    def get_id(self) -> int:
        """Numeric subject id written into the `sub` claim"""
        return self.id

    def hashed_credential(self) -> str:
        """Opaque stored password hash handed to the credential verifier"""
        return self.password_hash

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
