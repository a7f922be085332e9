# app/models/verification.py
import uuid

from tortoise import fields, models

CODE_MAX_LENGTH = 16


class VerificationRecord(models.Model):
    """
    One-time email verification / password reset code.
    - code: short [A-Z0-9] string mailed to the user
    - expires_at: absolute expiry; expired rows are removed by the purge job
    - at most one row per user is meant to exist (issuing deletes older rows)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField(
        "models.User", related_name="verification_records"
    )
    code = fields.CharField(max_length=CODE_MAX_LENGTH)
    expires_at = fields.DatetimeField(index=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "verification_records"
