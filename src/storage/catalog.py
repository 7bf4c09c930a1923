"""
Insights Catalog Module.

Renders the Athena definitions that expose the Parquet objects as a table:
the external table with date partition projection, and the saved monthly
average query. Column types are derived from the writer schema so the table
always matches what the collector writes.
"""

from typing import Dict

import pyarrow as pa

from storage.insights_writer import INSIGHTS_SCHEMA

HIVE_TYPES: Dict[pa.DataType, str] = {
    pa.string(): "string",
    pa.int64(): "bigint",
    pa.float64(): "double",
    pa.list_(pa.string()): "array<string>",
}

PARTITION_PROJECTION = {
    "year": ("2020,2030", 4),
    "month": ("1,12", 2),
    "day": ("1,31", 2),
}


def table_columns() -> Dict[str, str]:
    """Athena column names and types; Athena lower-cases Parquet column names."""
    return {field.name.lower(): HIVE_TYPES[field.type] for field in INSIGHTS_SCHEMA}


def table_ddl(
    bucket: str,
    database: str = "github_insights_db",
    table: str = "github_insights",
    prefix: str = "github-insights",
) -> str:
    """
    Render the CREATE EXTERNAL TABLE statement for the insights table.

    Partitions are discovered through projection over numeric ranges, so no
    partition ever needs to be registered.

    Args:
        bucket (str): Insights bucket
        database (str): Glue database name
        table (str): Table name
        prefix (str): Key prefix of the insights objects

    Returns:
        str: DDL statement
    """
    columns = ",\n".join(
        f"  `{name}` {column_type}" for name, column_type in table_columns().items()
    )

    properties = {
        "parquet.compression": "SNAPPY",
        "projection.enabled": "true",
    }
    for partition, (value_range, digits) in PARTITION_PROJECTION.items():
        properties[f"projection.{partition}.type"] = "integer"
        properties[f"projection.{partition}.range"] = value_range
        properties[f"projection.{partition}.digits"] = str(digits)
    properties["storage.location.template"] = (
        f"s3://{bucket}/{prefix}/year=${{year}}/month=${{month}}/day=${{day}}"
    )
    tblproperties = ",\n".join(f"  '{k}' = '{v}'" for k, v in properties.items())

    return (
        f"CREATE EXTERNAL TABLE IF NOT EXISTS `{database}`.`{table}` (\n"
        f"{columns}\n"
        ")\n"
        "PARTITIONED BY (`year` string, `month` string, `day` string)\n"
        "STORED AS PARQUET\n"
        f"LOCATION 's3://{bucket}/{prefix}/'\n"
        "TBLPROPERTIES (\n"
        f"{tblproperties}\n"
        ")"
    )


def monthly_average_query(year: int, month: int, table: str = "github_insights") -> str:
    """
    Average stars, forks, open issues and commits per repository for one month.

    Args:
        year (int): Partition year
        month (int): Partition month

    Returns:
        str: SELECT statement
    """
    return (
        "SELECT\n"
        "  reponame,\n"
        "  AVG(stars) AS avg_stars,\n"
        "  AVG(forks) AS avg_forks,\n"
        "  AVG(openissues) AS avg_open_issues,\n"
        "  AVG(commitslastmonth) AS avg_commits_last_month\n"
        f"FROM {table}\n"
        f"WHERE year = '{year:04d}'\n"
        f"  AND month = '{month:02d}'\n"
        "GROUP BY reponame\n"
        "ORDER BY avg_stars DESC"
    )
