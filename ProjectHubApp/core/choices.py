"""Typed enumerations (TextChoices) for roles and the topic/group/project lifecycles."""
from django.db import models

class UserRole(models.TextChoices):
    """System-level role assigned to a user account (immutable after creation)."""
    ADMIN = "admin", "Admin"
    COORDINATOR = "coordinator", "Coordinator"
    TEACHER = "teacher", "Teacher"
    STUDENT = "student", "Student"

class TopicStatus(models.TextChoices):
    """Review state of a submitted topic. Approved and rejected are terminal."""
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"

class Complexity(models.TextChoices):
    LOW = "Low", "Low"
    MEDIUM = "Medium", "Medium"
    HIGH = "High", "High"

class MembershipStatus(models.TextChoices):
    """State of a user's invitation into a student group."""
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"

class ProjectStatus(models.TextChoices):
    """Lifecycle of an allocated project."""
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"

class MilestoneStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
