from django.core.exceptions import ValidationError


def validate_non_negative(value):
    if value is not None and value < 0:
        raise ValidationError("Value cannot be negative.")
