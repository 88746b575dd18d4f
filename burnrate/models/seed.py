"""
Seed Data

The starter ledger shown to a new user: a realistic household spread
across every category and frequency, so the dashboard, breakdown and
planner have something meaningful to work on before the first edit.

Returned by every storage backend when nothing has been saved yet.
"""

from burnrate.models.expense import Expense

# (id, category, name, amount, frequency, icon, is_recurring)
_SEED_ROWS = [
    ("1", "Housing", "Rent / Mortgage", 2200, "monthly", "🏠", True),
    ("2", "Housing", "Property Tax / HOA", 350, "monthly", "🏘️", True),
    ("3", "Housing", "Home Maintenance Fund", 150, "monthly", "🔨", True),
    ("4", "Utilities", "Electricity", 120, "monthly", "⚡", True),
    ("5", "Utilities", "Water / Sewer", 60, "monthly", "💧", True),
    ("6", "Utilities", "Gas / Heating", 50, "monthly", "🔥", True),
    ("7", "Utilities", "Internet (Fiber)", 89, "monthly", "🌐", True),
    ("8", "Utilities", "Mobile Phone Plan", 75, "monthly", "📱", True),
    ("9", "Utilities", "Trash / Recycling", 25, "monthly", "♻️", True),
    ("10", "Food", "Groceries", 150, "weekly", "🛒", True),
    ("11", "Food", "Dining Out", 60, "weekly", "🍽️", False),
    ("12", "Food", "Morning Coffee", 6, "daily", "☕", True),
    ("13", "Food", "Work Lunches", 15, "daily", "🥪", True),
    ("14", "Food", "Snacks / Vending", 20, "weekly", "🍫", False),
    ("15", "Food", "Alcohol / Bars", 80, "monthly", "🍻", False),
    ("16", "Transport", "Car Payment", 450, "monthly", "🚘", True),
    ("17", "Transport", "Car Insurance", 110, "monthly", "🛡️", True),
    ("18", "Transport", "Fuel / Charging", 140, "monthly", "⛽", True),
    ("19", "Transport", "Public Transit Pass", 90, "monthly", "🚇", True),
    ("20", "Transport", "Uber / Lyft", 35, "monthly", "🚕", False),
    ("21", "Transport", "Car Maint / Repairs", 50, "monthly", "🔧", True),
    ("22", "Transport", "Parking / Tolls", 30, "monthly", "🅿️", False),
    ("23", "Health", "Health Insurance Premium", 250, "monthly", "🏥", True),
    ("24", "Health", "Gym Membership", 60, "monthly", "💪", True),
    ("25", "Health", "Therapy / Mental Health", 120, "monthly", "🧘", True),
    ("26", "Health", "Pharmacy / Meds", 40, "monthly", "💊", True),
    ("27", "Health", "Dental / Vision Co-pay", 200, "yearly", "👓", False),
    ("28", "Personal Care", "Haircuts / Salon", 50, "monthly", "✂️", True),
    ("29", "Personal Care", "Toiletries / Hygiene", 40, "monthly", "🧴", True),
    ("30", "Personal Care", "Cosmetics / Skincare", 45, "monthly", "💄", True),
    ("31", "Personal Care", "Clothing / Apparel", 100, "monthly", "👕", False),
    ("32", "Personal Care", "Laundry / Dry Cleaning", 30, "monthly", "🧺", True),
    ("33", "Software", "Google One / iCloud", 10, "monthly", "☁️", True),
    ("34", "Software", "AI Subscriptions", 40, "monthly", "🤖", True),
    ("35", "Software", "Streaming (Netflix/HBO)", 35, "monthly", "🎬", True),
    ("36", "Software", "Music (Spotify/Apple)", 15, "monthly", "🎵", True),
    ("37", "Tech", "Hardware Upgrade Fund", 100, "monthly", "💻", True),
    ("38", "Debt", "Student Loans", 300, "monthly", "🎓", True),
    ("39", "Debt", "Credit Card Interest", 60, "monthly", "💳", True),
    ("40", "Savings", "Emergency Fund", 200, "monthly", "🆘", True),
    ("41", "Investing", "Retirement (401k/IRA)", 500, "monthly", "📈", True),
    ("42", "Investing", "Crypto / Stocks", 150, "monthly", "🪙", True),
    ("43", "Family", "Childcare / Babysitting", 400, "monthly", "👶", True),
    ("44", "Pets", "Pet Food & Supplies", 60, "monthly", "🐶", True),
    ("45", "Pets", "Vet Bills (Avg)", 250, "yearly", "🩺", False),
    ("46", "Education", "Books / Courses", 40, "monthly", "📚", True),
    ("47", "Entertainment", "Movies / Events", 80, "monthly", "🎟️", False),
    ("48", "Entertainment", "Gaming / Hobbies", 50, "monthly", "🎮", True),
    ("49", "Gifts", "Birthdays / Holidays", 600, "yearly", "🎁", False),
    ("50", "Miscellaneous", "Amazon / Online Shopping", 100, "monthly", "📦", False),
    ("51", "Miscellaneous", "General Buffer", 100, "monthly", "🤷", True),
]

INITIAL_EXPENSES: list[Expense] = [
    Expense(
        id=expense_id,
        category=category,
        name=name,
        amount=amount,
        frequency=frequency,
        icon=icon,
        is_recurring=is_recurring,
    )
    for expense_id, category, name, amount, frequency, icon, is_recurring in _SEED_ROWS
]


def initial_expenses() -> list[Expense]:
    """Fresh copies of the seed ledger, safe for the caller to mutate."""
    return [expense.model_copy() for expense in INITIAL_EXPENSES]
