"""
Nudge copy and reminder timing

Message bodies per habit category and message kind:
- start: default reminders
- streak: encouragement while a streak is alive ({streak} is substituted)
- comeback: after 3+ days without a completion

Categories without their own copy fall back to the workout copy.
"""

from typing import Dict, List

from habitcore.models.habit import NudgeType, ReminderTime

DEFAULT_TEMPLATE_CATEGORY = "workout"

MOTIVATIONAL_MESSAGES: Dict[str, Dict[str, List[str]]] = {
    "workout": {
        "start": [
            "Time to build strength. Your future self will thank you.",
            "Every rep builds the person you're becoming.",
            "Champions show up when they don't feel like it.",
            "Your only competition is who you were yesterday.",
        ],
        "streak": [
            "Day {streak}: Consistency is your superpower.",
            "Streak of {streak}! You're building unstoppable momentum.",
            "Day {streak} of proving what discipline looks like.",
        ],
        "comeback": [
            "Every champion has comeback stories. This is yours.",
            "Setbacks are setups for comebacks. Let's go.",
            "The best time to start was yesterday. The second best is now.",
        ],
    },
    "nutrition": {
        "start": [
            "Fuel your body like the athlete you are.",
            "Great nutrition today means steady energy tomorrow.",
            "Log your meal and stay in control of your fuel.",
        ],
        "streak": [
            "{streak} days of fueling success. Your body notices.",
            "Nutrition streak: {streak}. You're programming excellence.",
        ],
        "comeback": [
            "Back to fueling your success. One meal at a time.",
            "Your nutrition comeback starts with this meal.",
        ],
    },
    "wellness": {
        "start": [
            "Mental strength is real strength. Check in with yourself.",
            "High performers track their inner game too.",
            "Your mindset shapes your day. Tune it up.",
        ],
        "streak": [
            "{streak} days of mental fitness. Mind = muscle.",
            "Wellness streak: {streak}. Your mental game is strong.",
        ],
        "comeback": [
            "Mental fitness comeback time. Your mind matters.",
            "Champions work on their inner game. Welcome back.",
        ],
    },
    "sleep": {
        "start": [
            "Recovery happens at night. Start winding down.",
            "A consistent bedtime is a performance upgrade.",
        ],
        "streak": [
            "{streak} nights of solid sleep. Recovery is on point.",
            "Sleep streak: {streak}. Your body is thanking you.",
        ],
        "comeback": [
            "Tonight is a fresh start for your sleep routine.",
            "Reset your rhythm. One good night leads to the next.",
        ],
    },
    "hydration": {
        "start": [
            "Grab some water. Small sips, big difference.",
            "Hydration check. Your energy depends on it.",
        ],
        "streak": [
            "{streak} days hydrated. Keep the tank full.",
            "Hydration streak: {streak}. Nicely done.",
        ],
        "comeback": [
            "Back on the water. Start with one glass now.",
            "Your hydration comeback starts with the next sip.",
        ],
    },
}

NUDGE_TITLES: Dict[NudgeType, str] = {
    NudgeType.STREAK_PROTECTION: "Don't Break the Chain!",
    NudgeType.ENCOURAGEMENT: "Keep the Momentum",
    NudgeType.COMEBACK: "Your Comeback Starts Now",
    NudgeType.SOCIAL_PROOF: "Join the Top Performers",
    NudgeType.ACHIEVEMENT_UNLOCK: "Achievement Within Reach",
}

ACTION_LABELS: Dict[NudgeType, str] = {
    NudgeType.STREAK_PROTECTION: "Protect My Streak",
    NudgeType.ENCOURAGEMENT: "Continue Streak",
    NudgeType.COMEBACK: "Make a Comeback",
    NudgeType.SOCIAL_PROOF: "Join the Elite",
    NudgeType.ACHIEVEMENT_UNLOCK: "Unlock Achievement",
    NudgeType.REMINDER: "Start Now",
}

STREAK_PROTECTION_BODY = "Don't break your {streak}-day streak. Champions protect their momentum."
SOCIAL_PROOF_BODY = "85% of users who maintain {category} habits reach their goals faster. You're almost there."
ACHIEVEMENT_UNLOCK_BODY = "One more {category} session unlocks your next achievement. Finish strong."

# Reminder titles by time of day; anything else uses the default
TIME_OF_DAY_TITLES: Dict[str, str] = {
    "morning": "Rise and Grind",
    "afternoon": "Power Through",
    "evening": "Finish Strong",
}
DEFAULT_REMINDER_TITLE = "Time to Level Up"

OPTIMAL_TIMES: Dict[str, List[ReminderTime]] = {
    "workout": [
        ReminderTime(hour=6, minute=30, label="Morning Energy"),
        ReminderTime(hour=12, minute=0, label="Lunch Break"),
        ReminderTime(hour=17, minute=30, label="After Work"),
    ],
    "nutrition": [
        ReminderTime(hour=8, minute=0, label="Breakfast"),
        ReminderTime(hour=12, minute=30, label="Lunch"),
        ReminderTime(hour=19, minute=0, label="Dinner"),
    ],
    "wellness": [
        ReminderTime(hour=9, minute=0, label="Morning Check-in"),
        ReminderTime(hour=15, minute=0, label="Afternoon Reflection"),
        ReminderTime(hour=21, minute=0, label="Evening Wind-down"),
    ],
    "sleep": [
        ReminderTime(hour=21, minute=30, label="Sleep Prep"),
        ReminderTime(hour=22, minute=30, label="Bedtime Reminder"),
    ],
    "hydration": [
        ReminderTime(hour=7, minute=0, label="Morning Hydration"),
        ReminderTime(hour=14, minute=0, label="Afternoon Hydration"),
        ReminderTime(hour=17, minute=0, label="Pre-Workout"),
    ],
}


def messages_for(category: str) -> Dict[str, List[str]]:
    """Template lists for a category, falling back to the workout copy"""
    return MOTIVATIONAL_MESSAGES.get(category, MOTIVATIONAL_MESSAGES[DEFAULT_TEMPLATE_CATEGORY])


def times_for(category: str) -> List[ReminderTime]:
    """Optimal reminder times for a category, falling back to workout times"""
    return OPTIMAL_TIMES.get(category, OPTIMAL_TIMES[DEFAULT_TEMPLATE_CATEGORY])
