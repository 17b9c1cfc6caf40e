from sqlalchemy import select


def format_number(prefix, number, width=4):
    return f"{prefix}{number:0{width}d}"


def next_number(session, column, prefix, width=4):
    """
    Next ``prefix`` + zero-padded number for ``column``.

    The maximum is taken over the numeric suffixes, so PREFIX-10000 counts
    as higher than PREFIX-9999; suffixes that are not numbers are ignored.
    """
    values = session.execute(select(column).where(column.like(f"{prefix}%"))).scalars()
    highest = 0
    for value in values:
        suffix = value[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return format_number(prefix, highest + 1, width)
