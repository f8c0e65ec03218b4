POINTS_CONFIG = {
    'video_watch': 50,
    'ebook_read': 30,
    'quiz_correct_answer': 10,
    'quiz_perfect_score_bonus': 50,
    'daily_login': 10,
}

LEVELING = {
    'xp_per_level': 500,
}

CERTIFICATES = {
    'passing_score': 70,
    'code_max_length': 50,
}

QUIZ_DEFAULTS = {
    'question_count': 10,
    'duration_minutes': 30,
}

ACTION_TYPES = {
    'quiz': 'quiz',
    'video_watch': 'video_watch',
    'ebook_read': 'ebook_read',
    'daily_login': 'daily_login',
}

LEADERBOARD = {
    'public_limit': 10,
    'history_limit': 50,
    'recent_activities': 5,
}
