# apiprobe/probes/indicators.py
from typing import Iterable

SQL_ERROR_SIGNATURES = [
    "SQL syntax",
    "mysql_fetch_array",
    "ORA-01756",
    "SQLite3::SQLException",
    "PostgreSQL ERROR",
    "Incorrect syntax near",
    "SQLSTATE[",
    "JDBC Driver",
    "Microsoft SQL Server",
    "You have an error in your SQL syntax",
]

NOSQL_ERROR_SIGNATURES = [
    "MongoError",
    "MongoServerError",
    "MongoNetworkError",
    "E11000 duplicate key",
    "BSONTypeError",
    "CastError",
    "unknown operator",
    "$where is not allowed",
    "CouchDB",
]


def _has_signature(body: str, signatures: Iterable[str]) -> bool:
    return any(sig in body for sig in signatures)


def _length_anomaly(body: str, baseline: str) -> bool:
    return len(body) > len(baseline) * 2 or len(body) < len(baseline) // 2


def _structure_changed(body: str, baseline: str) -> bool:
    return (body.count("{") != baseline.count("{")
            or body.count("}") != baseline.count("}"))


def sql_injection_indicated(body: str, baseline: str) -> bool:
    return (_has_signature(body, SQL_ERROR_SIGNATURES)
            or _length_anomaly(body, baseline)
            or _structure_changed(body, baseline))


def nosql_injection_indicated(body: str, baseline: str, payload: str) -> bool:
    if _has_signature(body, NOSQL_ERROR_SIGNATURES):
        return True
    if payload and payload in body and payload not in baseline:
        return True
    return _length_anomaly(body, baseline) or _structure_changed(body, baseline)
