# CSV export of tasting ratings

import csv
import io
from typing import Any, Iterable


def export_tasting_csv(tasting: Any, ratings: Iterable[Any]) -> str:
    """
    Выгрузка оценок дегустации в CSV: одна строка на оценку,
    по колонке на каждую ось (включая отключённые: в данных они могут быть).
    """
    codes = [d.code for d in tasting.dimensions]

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(
        ["sample_position", "sample_name", "user_id", "user_name"]
        + codes
        + ["comment", "updated_at"]
    )

    for rating in ratings:
        data = rating.data or {}
        writer.writerow(
            [
                rating.tea_sample.position,
                rating.tea_sample.name,
                rating.user_id,
                rating.user.display_name,
            ]
            + [data.get(code, "") for code in codes]
            + [
                rating.comment or "",
                rating.updated_at.isoformat() if rating.updated_at else "",
            ]
        )

    return output.getvalue()
