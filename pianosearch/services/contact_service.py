"""Visitor enquiries: mail to a classroom owner or to the site operator."""

from __future__ import annotations

import logging
from html import escape

from sqlalchemy.orm import Session

from ..config import get_settings
from ..db import models, schemas
from . import mail_service
from .mail_service import EmailDeliveryError

logger = logging.getLogger(__name__)

SITE_NAME = "ピアノサーチ"
CLASSROOM_SENT_MESSAGE = "お問い合わせを送信しました。"
GENERAL_SENT_MESSAGE = "お問い合わせを送信しました。確認メールをご確認ください。"
CLASSROOM_FAILED_MESSAGE = (
    "教室運営者へのメール送信に失敗しました。しばらく時間をおいて再度お試しください。"
)
GENERAL_FAILED_MESSAGE = "メールの送信に失敗しました。しばらく時間をおいて再度お試しください。"


class ContactError(Exception):
    pass


class ClassroomEmailMissing(ContactError):
    pass


def _row(label: str, value: str) -> str:
    return (
        "<tr>"
        f'<td style="padding: 8px 0; font-weight: bold; width: 120px;">{escape(label)}:</td>'
        f'<td style="padding: 8px 0;">{escape(value)}</td>'
        "</tr>"
    )


def _layout(title: str, intro: str, rows: list[tuple[str, str]], message: str, footer: str) -> str:
    table = "".join(_row(label, value) for label, value in rows)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #333;">【{SITE_NAME}】{escape(title)}</h2>'
        f"{intro}"
        '<div style="background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">'
        '<h3 style="color: #666;">お問い合わせ内容</h3>'
        f'<table style="width: 100%; border-collapse: collapse;">{table}</table>'
        "</div>"
        '<div style="background-color: #fff; border: 1px solid #ddd; padding: 20px; border-radius: 8px;">'
        '<h3 style="color: #666;">お問い合わせ内容:</h3>'
        f'<p style="line-height: 1.6; white-space: pre-line;">{escape(message)}</p>'
        "</div>"
        '<div style="margin-top: 30px; padding: 15px; background-color: #e8f4f8; border-radius: 8px;">'
        f'<p style="margin: 0; font-size: 14px; color: #666;">{footer}</p>'
        "</div>"
        "</div>"
    )


def build_classroom_mail(classroom_name: str, payload: schemas.ClassroomContact) -> tuple[str, str]:
    rows = [
        ("教室名", classroom_name),
        ("お名前", payload.sender_name),
        ("メールアドレス", str(payload.sender_email)),
    ]
    if payload.sender_phone:
        rows.append(("電話番号", payload.sender_phone))
    footer = (
        f"このメールは <strong>{SITE_NAME}</strong> のお問い合わせフォームから自動送信されました。<br>"
        f"お問い合わせ主（{escape(payload.sender_name)} 様: {escape(str(payload.sender_email))}）"
        "に直接ご返信ください。"
    )
    subject = (
        f"【{SITE_NAME}】{classroom_name} へのお問い合わせがありました"
        f"（{payload.sender_name} 様より）"
    )
    html = _layout("お問い合わせがありました", "", rows, payload.message, footer)
    return subject, html


def build_admin_mail(payload: schemas.GeneralContact) -> tuple[str, str]:
    rows = [
        ("件名", payload.subject),
        ("お名前", payload.sender_name),
        ("メールアドレス", str(payload.sender_email)),
    ]
    footer = (
        f"このメールは <strong>{SITE_NAME}</strong> のお問い合わせフォームから自動送信されました。<br>"
        "お問い合わせいただいた方に直接ご返信ください。"
    )
    html = _layout("お問い合わせがありました", "", rows, payload.message, footer)
    return f"【{SITE_NAME}】{payload.subject}", html


def build_confirmation_mail(payload: schemas.GeneralContact) -> tuple[str, str]:
    rows = [
        ("件名", payload.subject),
        ("お名前", payload.sender_name),
        ("メールアドレス", str(payload.sender_email)),
    ]
    intro = (
        f"<p>{escape(payload.sender_name)} 様</p>"
        "<p>下記の内容でお問い合わせを受け付けました。<br>確認次第、ご返信いたします。</p>"
    )
    footer = (
        f"このメールは <strong>{SITE_NAME}</strong> から自動送信されました。<br>"
        "ご不明点がございましたら、お気軽にお問い合わせください。"
    )
    html = _layout("お問い合わせを受け付けました", intro, rows, payload.message, footer)
    return f"【{SITE_NAME}】お問い合わせを受け付けました", html


def contact_classroom(
    db: Session, classroom: models.Classroom, payload: schemas.ClassroomContact
) -> schemas.ContactResult:
    if not classroom.email:
        raise ClassroomEmailMissing("Classroom has no contact email")
    settings = get_settings()
    subject, html = build_classroom_mail(classroom.name, payload)
    result = mail_service.send_email(
        to=classroom.email,
        subject=subject,
        html=html,
        sender=settings.contact_mail_from,
        reply_to=str(payload.sender_email),
    )
    db.add(
        models.MailLog(
            to_email=classroom.email,
            status=result.status_code,
            sender_email=str(payload.sender_email),
            classroom_name=classroom.name,
            response_text=None if result.ok else result.response_text,
        )
    )
    db.commit()
    if not result.ok:
        raise EmailDeliveryError(CLASSROOM_FAILED_MESSAGE, result)
    logger.info("Classroom enquiry delivered", extra={"classroom_id": classroom.id})
    return schemas.ContactResult(success=True, message=CLASSROOM_SENT_MESSAGE)


def contact_site(payload: schemas.GeneralContact) -> schemas.ContactResult:
    settings = get_settings()
    subject, html = build_admin_mail(payload)
    admin_result = mail_service.send_email(
        to=settings.admin_contact_email,
        subject=subject,
        html=html,
        reply_to=str(payload.sender_email),
    )
    subject, html = build_confirmation_mail(payload)
    sender_result = mail_service.send_email(
        to=str(payload.sender_email),
        subject=subject,
        html=html,
    )
    if not admin_result.ok or not sender_result.ok:
        logger.error(
            "General enquiry delivery failed",
            extra={
                "admin_status": admin_result.status_code,
                "sender_status": sender_result.status_code,
            },
        )
        raise EmailDeliveryError(GENERAL_FAILED_MESSAGE, admin_result if not admin_result.ok else sender_result)
    return schemas.ContactResult(success=True, message=GENERAL_SENT_MESSAGE)
