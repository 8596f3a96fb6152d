"""Mail boundary: SMTP transport."""

from car_repair.boundary.mail.smtp_mailer import MailTransport, SmtpMailer

__all__ = ["MailTransport", "SmtpMailer"]
