def goal_reached(previous: int | None, current: int | None, goal: int | None) -> bool:
    """
    Detecta o cruzamento da meta (edge-triggered): dispara uma única vez
    quando a contagem passa de abaixo da meta para >= meta, e não volta a
    disparar enquanto continuar acima dela.
    """
    if current is None or goal is None:
        return False
    if current < goal:
        return False
    return previous is None or previous < goal


def count_changed(previous: int | None, current: int | None) -> bool:
    return previous is not None and current is not None and previous != current
