import re

PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)

PASSWORD_REQUIREMENTS = (
    "Password must be at least 8 characters long and contain an upper-case "
    "letter, a lower-case letter, a digit and one of @$!%*?&"
)


def is_strong_password(password: str) -> bool:
    if not password or len(password) < 8:
        return False
    return PASSWORD_PATTERN.match(password) is not None
