from apps.core.calendar import date_key, parse_date_key, parse_month_key


class DateKeyConverter:
    """<day:...> path segment: 'YYYY-MM-DD' <-> date."""
    regex = r'\d{4}-\d{2}-\d{2}'

    def to_python(self, value):
        return parse_date_key(value)

    def to_url(self, value):
        return value if isinstance(value, str) else date_key(value)


class MonthKeyConverter:
    """<month:...> path segment: validated 'YYYY-MM' string."""
    regex = r'\d{4}-\d{2}'

    def to_python(self, value):
        parse_month_key(value)
        return value

    def to_url(self, value):
        return value
