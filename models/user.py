"""User model definition."""

from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from . import db, isoformat, utcnow


ROLES = ("admin", "provider", "consumer")


class User(db.Model):
    """Represents a platform account."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(64), nullable=True)
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(32), nullable=False, default="consumer")
    email_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.text("false"),
    )
    email_verification_token = db.Column(db.String(64), nullable=True, index=True)
    email_verification_expiry = db.Column(db.DateTime, nullable=True)
    expo_push_token = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    provider_profile = db.relationship(
        "Provider",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    consumer_profiles = db.relationship(
        "Consumer",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    feedback = db.relationship(
        "Feedback",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def has_account(self) -> bool:
        """Placeholder users created by a provider have no password yet."""

        return bool(self.password_hash)

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def mark_email_verified(self) -> None:
        """Mark the email verified and clear the one-time token."""

        self.email_verified = True
        self.email_verification_token = None
        self.email_verification_expiry = None

    def summary(self, fields: Optional[tuple[str, ...]] = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "emailVerified": self.email_verified,
            "createdAt": isoformat(self.created_at),
        }
        if fields is None:
            return data
        return {key: data[key] for key in fields}

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
