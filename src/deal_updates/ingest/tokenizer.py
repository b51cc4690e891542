"""Quote- and newline-aware tokenizer for CRM export text."""

BOM = "\ufeff"


def tokenize(text: str) -> list[list[str]]:
    """
    Split export text into rows of string fields.

    Handles comma separators, double-quoted fields, "" as an escaped quote,
    commas and raw newlines inside quotes, \\r\\n / \\n / \\r row terminators,
    and a final row with no terminator. Field counts are not validated here.
    """
    if text.startswith(BOM):
        text = text[1:]

    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        char = text[i]
        if in_quotes:
            if char == '"':
                if i + 1 < n and text[i + 1] == '"':
                    field.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                field.append(char)
        elif char == '"':
            in_quotes = True
        elif char == ",":
            row.append("".join(field))
            field = []
        elif char in "\r\n":
            if char == "\r" and i + 1 < n and text[i + 1] == "\n":
                i += 1
            row.append("".join(field))
            rows.append(row)
            row = []
            field = []
        else:
            field.append(char)
        i += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    return rows
