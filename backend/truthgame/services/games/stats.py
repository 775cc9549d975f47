def summarize_results(results) -> dict:
    """Cumulative session statistics over persisted round results, in round order."""
    stats = {
        'total_correct': 0,
        'total_incorrect': 0,
        'forfeits': 0,
        'current_streak': 0,
        'max_streak': 0,
        'humble_correct': 0,  # correct at confidence 1
        'bold_correct': 0,    # correct at confidence 3
        'lowest_point': 0,
        'perfect_game': False,
    }
    running = 0
    streak = 0
    for r in results:
        if r.correct:
            stats['total_correct'] += 1
            streak += 1
            stats['max_streak'] = max(stats['max_streak'], streak)
            if r.confidence == 1:
                stats['humble_correct'] += 1
            elif r.confidence == 3:
                stats['bold_correct'] += 1
        else:
            stats['total_incorrect'] += 1
            streak = 0
        if r.forfeited:
            stats['forfeits'] += 1
        running += r.points
        stats['lowest_point'] = min(stats['lowest_point'], running)
    stats['current_streak'] = streak
    stats['perfect_game'] = bool(results) and stats['total_incorrect'] == 0
    return stats
