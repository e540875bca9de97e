from lessons.email.service import BatchReceipt, EmailError, EmailMessage, EmailService

__all__ = ["BatchReceipt", "EmailError", "EmailMessage", "EmailService"]
