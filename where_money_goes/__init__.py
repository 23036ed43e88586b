"""Where does my money go?

Estimates NYC income tax from an annual income and shows how it is spent
across the city budget as two nested donut charts.
"""

__version__ = "0.1.0"
