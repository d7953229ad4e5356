# clipboard_validator.py
from clipboard_errors import InvalidUtf8, TextTooLarge
from settings_manager import MAX_TEXT_BYTES


def validate_text(text: str, max_bytes: int = MAX_TEXT_BYTES) -> None:
    """
    Проверяет текст перед записью в буфер обмена. Ничего не возвращает,
    при нарушении политики бросает ValidationError.

    Лимит считается в байтах UTF-8, а не в символах. Пустая строка допустима.
    """
    try:
        size = len(text.encode("utf-8"))
    except UnicodeEncodeError:
        # Одиночные суррогаты: декодер JSON их пропускает, а ОС - нет.
        raise InvalidUtf8()
    if size > max_bytes:
        raise TextTooLarge(size, max_bytes)
