# Rating aggregation: grouped averages and rule-based text summary

from collections import defaultdict
from typing import Any, Iterable, Mapping, Optional

# Пороги для нормированного среднего (0..1 в диапазоне оси)
STRONG_THRESHOLD = 0.7
WEAK_THRESHOLD = 0.4

LEVEL_STRONG = "strong"
LEVEL_MODERATE = "moderate"
LEVEL_WEAK = "weak"

LEVEL_TEXT = {
    LEVEL_STRONG: "ярко выражено",
    LEVEL_MODERATE: "умеренно",
    LEVEL_WEAK: "слабо выражено",
}


def _mean(values: list[float]) -> float:
    return round(sum(values) / len(values), 2)


def _active(dimensions: Iterable[Any]) -> list[Any]:
    return [d for d in dimensions if d.is_active]


def dimension_info(dimensions: Iterable[Any]) -> list[dict[str, Any]]:
    """Описание активных осей для ответа API (и подписей радар-диаграммы)."""
    return [
        {
            "code": d.code,
            "name": d.name,
            "min_value": d.min_value,
            "max_value": d.max_value,
        }
        for d in _active(dimensions)
    ]


def average_by_dimension(
    rows: Iterable[Mapping[str, Any]],
    dimensions: Iterable[Any],
) -> dict[str, float]:
    """
    Среднее арифметическое по каждой активной оси.

    Строка без значения оси в среднем этой оси не участвует; оси без
    единого значения в результат не попадают. Порядок ключей: порядок осей.
    """
    active = _active(dimensions)
    values: dict[str, list[float]] = defaultdict(list)

    for row in rows:
        for d in active:
            value = row.get(d.code)
            if value is not None:
                values[d.code].append(value)

    return {d.code: _mean(values[d.code]) for d in active if values[d.code]}


def normalize(value: float, dimension: Any) -> float:
    """Положение значения в диапазоне оси: 0: минимум, 1: максимум."""
    span = dimension.max_value - dimension.min_value
    return (value - dimension.min_value) / span


def classify_level(value: float, dimension: Any) -> str:
    score = normalize(value, dimension)
    if score >= STRONG_THRESHOLD:
        return LEVEL_STRONG
    if score <= WEAK_THRESHOLD:
        return LEVEL_WEAK
    return LEVEL_MODERATE


def describe_profile(
    averages: Mapping[str, float],
    dimensions: Iterable[Any],
) -> str:
    """
    Текстовое описание профиля по средним значениям.

    Первая строка называет самую выраженную ось, далее по строке на ось:
        Сильнее всего выражено: Аромат.
        Аромат: ярко выражено (8.5 из 10)
        Сладость: умеренно (5.0 из 10)
    """
    rated = [d for d in _active(dimensions) if d.code in averages]
    if not rated:
        return "Оценок пока нет."

    strongest = max(rated, key=lambda d: normalize(averages[d.code], d))
    lines = [f"Сильнее всего выражено: {strongest.name}."]

    for d in rated:
        level = classify_level(averages[d.code], d)
        lines.append(
            f"{d.name}: {LEVEL_TEXT[level]} ({averages[d.code]:g} из {d.max_value})"
        )

    return "\n".join(lines)


def _overall(averages: Mapping[str, float]) -> Optional[float]:
    if not averages:
        return None
    return _mean(list(averages.values()))


def build_tasting_summary(tasting: Any, ratings: Iterable[Any]) -> dict[str, Any]:
    """
    Сводка дегустации: средние по образцам и по осям в целом.

    ratings: оценки всех участников (user_id, tea_sample_id, data).
    """
    ratings = list(ratings)
    dimensions = list(tasting.dimensions)

    by_sample: dict[int, list[Mapping[str, Any]]] = defaultdict(list)
    for rating in ratings:
        by_sample[rating.tea_sample_id].append(rating.data or {})

    samples = []
    for sample in sorted(tasting.samples, key=lambda s: s.position):
        rows = by_sample.get(sample.id, [])
        averages = average_by_dimension(rows, dimensions)
        samples.append({
            "id": sample.id,
            "position": sample.position,
            "name": sample.name,
            "ratings_count": len(rows),
            "averages": averages,
            "overall": _overall(averages),
        })

    averages = average_by_dimension((r.data or {} for r in ratings), dimensions)

    return {
        "tasting": {"id": tasting.id, "title": tasting.title},
        "participants": len({r.user_id for r in ratings}),
        "ratings_count": len(ratings),
        "dimensions": dimension_info(dimensions),
        "averages": averages,
        "samples": samples,
        "summary_text": describe_profile(averages, dimensions),
    }


def build_user_profile(
    tasting: Any,
    user: Any,
    user_ratings: Iterable[Any],
    all_ratings: Iterable[Any],
) -> dict[str, Any]:
    """
    Вкусовой профиль участника в рамках дегустации.

    averages: серия участника для радар-диаграммы,
    group_averages: средние всех участников для сравнения.
    """
    user_ratings = list(user_ratings)
    dimensions = list(tasting.dimensions)
    samples_by_id = {s.id: s for s in tasting.samples}

    rated_samples = []
    for rating in sorted(user_ratings, key=lambda r: samples_by_id[r.tea_sample_id].position):
        sample = samples_by_id[rating.tea_sample_id]
        sample_averages = average_by_dimension([rating.data or {}], dimensions)
        rated_samples.append({
            "id": sample.id,
            "position": sample.position,
            "name": sample.name,
            "data": dict(rating.data or {}),
            "comment": rating.comment,
            "overall": _overall(sample_averages),
        })

    averages = average_by_dimension((r.data or {} for r in user_ratings), dimensions)
    group_averages = average_by_dimension((r.data or {} for r in all_ratings), dimensions)

    favorite = None
    scored = [s for s in rated_samples if s["overall"] is not None]
    if scored:
        best = max(scored, key=lambda s: s["overall"])
        favorite = {"id": best["id"], "name": best["name"], "overall": best["overall"]}

    return {
        "user": {"id": user.id, "name": user.display_name},
        "tasting": {"id": tasting.id, "title": tasting.title},
        "dimensions": dimension_info(dimensions),
        "averages": averages,
        "group_averages": group_averages,
        "samples": rated_samples,
        "favorite_sample": favorite,
        "summary_text": describe_profile(averages, dimensions),
    }
