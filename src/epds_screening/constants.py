"""EPDS scoring constants shared across the SDK.

The Edinburgh Postnatal Depression Scale has ten items, each answered on a
0-3 scale.  Item 10 asks about thoughts of self-harm, so any non-zero
answer escalates regardless of the total.
"""

QUESTION_COUNT = 10

# Form field names, in questionnaire order: q1 .. q10.
QUESTION_FIELDS: tuple[str, ...] = tuple(f"q{i}" for i in range(1, QUESTION_COUNT + 1))

ANSWER_MIN = 0
ANSWER_MAX = 3

# Totals at or above this value are high risk.
HIGH_RISK_TOTAL = 13

# Any answer at or above this value on item 10 is high risk.
SELF_HARM_THRESHOLD = 1
SELF_HARM_FIELD = QUESTION_FIELDS[-1]
