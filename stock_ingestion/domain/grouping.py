"""
Row grouper: clusters validated import rows into transfer groups.

Key resolution per row, first non-empty wins:

    1. ``Batch ID`` column
    2. ``Transfer Number`` column (re-importing an export keeps transfers apart)
    3. ``origin|destination`` pair -- flagged with an ``IMPLICIT_GROUPING``
       warning, or rejected when implicit grouping is disabled

Architecture: stock_ingestion/domain. ZERO I/O.
"""

from __future__ import annotations

from typing import Sequence

from stock_kernel.domain.dtos import ValidationError

from stock_ingestion.domain.types import (
    GroupKeySource,
    ImportWarning,
    TransferGroup,
    TransferRow,
)


def group_key(row: TransferRow) -> tuple[str, GroupKeySource]:
    if row.batch_id:
        return f"batch:{row.batch_id}", GroupKeySource.BATCH_ID
    if row.transfer_number:
        return f"transfer:{row.transfer_number}", GroupKeySource.TRANSFER_NUMBER
    return (
        f"{row.origin_location}|{row.destination_location}",
        GroupKeySource.LOCATIONS,
    )


def group_rows(
    rows: Sequence[TransferRow],
    allow_implicit: bool = True,
) -> tuple[list[TransferGroup], list[ValidationError], list[ImportWarning]]:
    """
    Group rows by key, preserving first-seen order of groups and rows.

    Errors (any one fails the import):
        GROUP_LOCATION_MISMATCH     rows of one group name different locations
        DUPLICATE_PRODUCT_IN_GROUP  a product id repeats within a group
        IMPLICIT_GROUPING_DISABLED  row has no batch id / transfer number and
                                    ``allow_implicit`` is False
    """
    buckets: dict[str, list[TransferRow]] = {}
    sources: dict[str, GroupKeySource] = {}
    products: dict[str, set[str]] = {}
    errors: list[ValidationError] = []

    for row in rows:
        key, source = group_key(row)

        if source is GroupKeySource.LOCATIONS and not allow_implicit:
            errors.append(ValidationError(
                code="IMPLICIT_GROUPING_DISABLED",
                message=(
                    f"line {row.line_number}: a Batch ID or Transfer Number is "
                    "required to group rows"
                ),
                details={"line": row.line_number},
            ))
            continue

        bucket = buckets.get(key)
        if bucket is None:
            buckets[key] = [row]
            sources[key] = source
            products[key] = {row.product_id}
            continue

        first = bucket[0]
        if (row.origin_location, row.destination_location) != (
            first.origin_location, first.destination_location,
        ):
            errors.append(ValidationError(
                code="GROUP_LOCATION_MISMATCH",
                message=(
                    f"line {row.line_number}: {row.origin_location} -> "
                    f"{row.destination_location} does not match "
                    f"{first.origin_location} -> {first.destination_location} "
                    f"from line {first.line_number}"
                ),
                details={"line": row.line_number, "group_key": key},
            ))
            continue

        if row.product_id in products[key]:
            errors.append(ValidationError(
                code="DUPLICATE_PRODUCT_IN_GROUP",
                message=(
                    f"line {row.line_number}: product {row.product_id} appears "
                    "more than once in the same transfer"
                ),
                field="Product ID",
                details={"line": row.line_number, "group_key": key},
            ))
            continue

        products[key].add(row.product_id)
        bucket.append(row)

    groups = [
        TransferGroup(
            key=key,
            source=sources[key],
            origin_location=bucket[0].origin_location,
            destination_location=bucket[0].destination_location,
            rows=tuple(bucket),
        )
        for key, bucket in buckets.items()
    ]
    warnings = [
        ImportWarning(
            code="IMPLICIT_GROUPING",
            message=(
                f"{len(g.rows)} row(s) grouped by origin/destination "
                f"{g.origin_location} -> {g.destination_location}; add a Batch ID "
                "column to keep unrelated transfers apart"
            ),
            group_key=g.key,
        )
        for g in groups
        if g.source is GroupKeySource.LOCATIONS
    ]
    return groups, errors, warnings
