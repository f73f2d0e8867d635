from django.db import models


# ---------- Audit / Event log ----------
class AuditLog(
    models.Model
):  # Traceability for every balance-changing operation
    # Type of event being logged
    action = models.CharField(
        max_length=50
    )  # Common choices: settle, ingest, delete
    # What kind of object was affected
    object_type = models.CharField(
        max_length=100
    )  # (e.g., "Payment", "Customer")
    object_id = models.CharField(max_length=100)
    # Before/after details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["object_type", "object_id"],
                         name="audit_object_idx"),
            models.Index(fields=["created_at"], name="audit_created_idx"),
        ]

    def __str__(self):
        time = self.created_at
        action = self.action
        objType = self.object_type
        objId = self.object_id
        return f"[{time:%Y-%m-%d %H:%M}] {action} {objType}({objId})"
