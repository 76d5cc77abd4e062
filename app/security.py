"""Security utilities for input validation and sanitization."""

import html
import re
import bleach


# Tags the article editor is allowed to produce
ALLOWED_HTML_TAGS = {
    'p', 'br', 'strong', 'b', 'em', 'i', 'u', 's',
    'h2', 'h3', 'h4', 'h5', 'h6',
    'ul', 'ol', 'li',
    'a', 'blockquote', 'code', 'pre', 'hr',
    'img', 'figure', 'figcaption', 'span',
    'table', 'thead', 'tbody', 'tr', 'th', 'td'
}

ALLOWED_HTML_ATTRIBUTES = {
    'a': ['href', 'title', 'rel'],
    'img': ['src', 'alt', 'title', 'width', 'height'],
    'td': ['colspan', 'rowspan'],
    'th': ['colspan', 'rowspan'],
    '*': ['class']
}

ALLOWED_PROTOCOLS = ['http', 'https', 'mailto']

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class InputSanitizer:
    @staticmethod
    def sanitize_html(text, allowed_tags=None, allowed_attributes=None, allowed_protocols=None):
        """
        Sanitize HTML content to prevent XSS attacks.

        Args:
            text: The HTML content to sanitize
            allowed_tags: Set of allowed HTML tags (default: ALLOWED_HTML_TAGS)
            allowed_attributes: Dict of allowed attributes per tag (default: ALLOWED_HTML_ATTRIBUTES)
            allowed_protocols: List of allowed URL protocols (default: ALLOWED_PROTOCOLS)

        Returns:
            Sanitized HTML string with dangerous content removed
        """
        if not text:
            return ''

        if allowed_tags is None:
            allowed_tags = ALLOWED_HTML_TAGS
        if allowed_attributes is None:
            allowed_attributes = ALLOWED_HTML_ATTRIBUTES
        if allowed_protocols is None:
            allowed_protocols = ALLOWED_PROTOCOLS

        cleaned = bleach.clean(
            str(text),
            tags=allowed_tags,
            attributes=allowed_attributes,
            protocols=allowed_protocols,
            strip=True
        )

        return bleach.linkify(cleaned, parse_email=True)

    @staticmethod
    def strip_tags(text):
        """
        Remove every HTML tag, keeping only the text content.

        The result is plain text, not HTML: the entities bleach writes for
        '&', '<' and '>' are decoded again ('Bees & Honey' stays as typed).
        """
        if not text:
            return ''
        return html.unescape(bleach.clean(str(text), tags=set(), strip=True))

    @staticmethod
    def sanitize_text(text, max_length=None):
        """
        Sanitize multi-line plain text (comments, forum posts, contact messages).

        HTML is stripped and surrounding whitespace trimmed; line breaks are kept.
        """
        if not text:
            return ''

        sanitized = InputSanitizer.strip_tags(text).strip()

        if max_length and len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        return sanitized

    @staticmethod
    def sanitize_description(description, max_length=500):
        """
        Sanitize single-line plain text by stripping HTML, collapsing whitespace and limiting length.
        Use this for titles, names, subjects and moderation reasons.
        """
        if not description:
            return ''

        sanitized = InputSanitizer.strip_tags(description)
        sanitized = re.sub(r'\s+', ' ', sanitized.strip())

        if max_length and len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        return sanitized

    @staticmethod
    def sanitize_username(username):
        if not username:
            return ''

        sanitized = re.sub(r'[^A-Za-z0-9_.-]', '', str(username))

        return sanitized.strip()

    @staticmethod
    def sanitize_email(email):
        """
        Normalize an email address (trimmed, lower-cased) and check its shape.

        Raises:
            ValueError: If the address is not a plausible email
        """
        if not email:
            raise ValueError("Email is required")

        normalized = str(email).strip().lower()

        if len(normalized) > 255 or not EMAIL_PATTERN.match(normalized):
            raise ValueError(f"Invalid email address: {email}")

        return normalized

    @staticmethod
    def sanitize_positive_integer(value, max_val=None):
        """
        Sanitize and validate positive integers (ids, page numbers, durations).

        Raises:
            ValueError: If value is not a positive integer or out of range
        """
        try:
            int_value = int(value)

            if int_value < 1:
                raise ValueError(f"Value must be positive, got {int_value}")

            if max_val is not None and int_value > max_val:
                raise ValueError(f"Value {int_value} exceeds maximum {max_val}")

            return int_value

        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid positive integer: {value}") from e

    @staticmethod
    def sanitize_boolean(value):
        """
        Sanitize and validate boolean values.

        Args:
            value: The value to sanitize (can be bool, string, int)

        Returns:
            Boolean value
        """
        if isinstance(value, bool):
            return value

        if isinstance(value, str):
            value_lower = value.lower().strip()
            if value_lower in ('true', '1', 'yes', 'on'):
                return True
            elif value_lower in ('false', '0', 'no', 'off', ''):
                return False

        if isinstance(value, int):
            return bool(value)

        raise ValueError(f"Invalid boolean value: {value}")


class SQLInjectionPrevention:
    @classmethod
    def sanitize_for_like(cls, text):
        """Escape LIKE wildcards so user search terms match literally (use with escape='\\')."""
        if not text:
            return ''

        text = str(text).replace('\\', '\\\\')
        text = text.replace('%', '\\%')
        text = text.replace('_', '\\_')

        return text


def add_security_headers(response):
    """Add security headers including CSP to all responses."""
    from flask import current_app

    headers = current_app.config.get('SECURITY_HEADERS', {})
    for header, value in headers.items():
        response.headers[header] = value

    csp_config = current_app.config.get('CONTENT_SECURITY_POLICY', {})
    if csp_config:
        csp_header = build_csp_header(csp_config)
        response.headers['Content-Security-Policy'] = csp_header

    return response


def build_csp_header(csp_config):
    """Build CSP header string from config dictionary."""
    directives = []

    for directive, sources in csp_config.items():
        if not sources:
            directives.append(directive)
        else:
            sources_str = ' '.join(sources)
            directives.append(f"{directive} {sources_str}")

    return '; '.join(directives)
