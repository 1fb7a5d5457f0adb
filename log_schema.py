#!/usr/bin/env python3
"""
Synthetic log record schema.

Every record has the same 15 fields, always in this order:

  timestamp, level, message, source_ip, user_id, request_id,
  http_method, http_path, http_status, user_agent, response_time_ms,
  app_version, service_name, region, payload

Each field has one generator, stored in FIELD_SPECS, that draws from an
explicitly passed random.Random so a seed reproduces a corpus. Values are
tagged (StringValue / IntValue); a field always yields the same tag.
"""

import json
import random
import string
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple, Union

# ============================================================================
# Constants
# ============================================================================

ALPHANUMERIC = string.ascii_letters + string.digits

FIXED_DATE = "2025-07-09"

LEVELS = ["INFO", "WARN", "ERROR", "DEBUG"]
HTTP_METHODS = ["GET", "POST", "PUT", "DELETE"]
HTTP_STATUSES = [200, 201, 400, 404, 500]
SERVICES = ["auth-service", "product-service", "order-service"]
REGIONS = ["us-east-1", "us-west-2", "eu-central-1"]

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)

REQUEST_ID_LEN = 32
PAYLOAD_LEN = 2500
FALLBACK_LEN = 10


# ============================================================================
# Values
# ============================================================================

@dataclass(frozen=True)
class StringValue:
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"StringValue needs str, got {type(self.value).__name__}")


@dataclass(frozen=True)
class IntValue:
    value: int

    def __post_init__(self):
        # bool is an int subclass but would serialize as true/false
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"IntValue needs int, got {type(self.value).__name__}")


Value = Union[StringValue, IntValue]
Record = Dict[str, Value]


# ============================================================================
# Field generators
# ============================================================================

def random_alnum(rng: random.Random, length: int) -> str:
    """Draw `length` characters uniformly from [A-Za-z0-9]."""
    return ''.join(rng.choice(ALPHANUMERIC) for _ in range(length))


def gen_timestamp(rng: random.Random) -> StringValue:
    hour = rng.randrange(0, 24)
    minute = rng.randrange(0, 60)
    second = rng.randrange(0, 60)
    ms = rng.randrange(0, 1000)
    return StringValue(f"{FIXED_DATE}T{hour:02d}:{minute:02d}:{second:02d}.{ms:03d}Z")


def gen_level(rng: random.Random) -> StringValue:
    return StringValue(rng.choice(LEVELS))


def gen_message(rng: random.Random) -> StringValue:
    return StringValue(random_alnum(rng, rng.randrange(50, 151)))


def gen_source_ip(rng: random.Random) -> StringValue:
    return StringValue('.'.join(str(rng.randrange(1, 255)) for _ in range(4)))


def gen_user_id(rng: random.Random) -> StringValue:
    return StringValue(f"user-{rng.randrange(1000, 10000)}")


def gen_request_id(rng: random.Random) -> StringValue:
    return StringValue(random_alnum(rng, REQUEST_ID_LEN))


def gen_http_method(rng: random.Random) -> StringValue:
    return StringValue(rng.choice(HTTP_METHODS))


def gen_http_path(rng: random.Random) -> StringValue:
    n_segments = rng.randrange(1, 4)
    segments = [random_alnum(rng, rng.randrange(5, 11)) for _ in range(n_segments)]
    return StringValue('/' + '/'.join(segments))


def gen_http_status(rng: random.Random) -> IntValue:
    return IntValue(rng.choice(HTTP_STATUSES))


def gen_user_agent(rng: random.Random) -> StringValue:
    return StringValue(USER_AGENT)


def gen_response_time_ms(rng: random.Random) -> IntValue:
    return IntValue(rng.randrange(10, 501))


def gen_app_version(rng: random.Random) -> StringValue:
    major = rng.randrange(1, 6)
    minor = rng.randrange(0, 10)
    patch = rng.randrange(0, 10)
    return StringValue(f"{major}.{minor}.{patch}")


def gen_service_name(rng: random.Random) -> StringValue:
    return StringValue(rng.choice(SERVICES))


def gen_region(rng: random.Random) -> StringValue:
    return StringValue(rng.choice(REGIONS))


def gen_payload(rng: random.Random) -> StringValue:
    return StringValue(random_alnum(rng, PAYLOAD_LEN))


# ============================================================================
# Schema
# ============================================================================

@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: type
    generator: Callable[[random.Random], Value]


FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec("timestamp", StringValue, gen_timestamp),
    FieldSpec("level", StringValue, gen_level),
    FieldSpec("message", StringValue, gen_message),
    FieldSpec("source_ip", StringValue, gen_source_ip),
    FieldSpec("user_id", StringValue, gen_user_id),
    FieldSpec("request_id", StringValue, gen_request_id),
    FieldSpec("http_method", StringValue, gen_http_method),
    FieldSpec("http_path", StringValue, gen_http_path),
    FieldSpec("http_status", IntValue, gen_http_status),
    FieldSpec("user_agent", StringValue, gen_user_agent),
    FieldSpec("response_time_ms", IntValue, gen_response_time_ms),
    FieldSpec("app_version", StringValue, gen_app_version),
    FieldSpec("service_name", StringValue, gen_service_name),
    FieldSpec("region", StringValue, gen_region),
    FieldSpec("payload", StringValue, gen_payload),
)

FIELD_NAMES: List[str] = [spec.name for spec in FIELD_SPECS]
FIELD_TYPES: Dict[str, type] = {spec.name: spec.kind for spec in FIELD_SPECS}
_GENERATORS: Dict[str, Callable[[random.Random], Value]] = {
    spec.name: spec.generator for spec in FIELD_SPECS
}


def generate_value(name: str, rng: random.Random) -> Value:
    """Generate a value for `name`; unknown names get a short random string."""
    generator = _GENERATORS.get(name)
    if generator is None:
        return StringValue(random_alnum(rng, FALLBACK_LEN))
    return generator(rng)


def generate_record(rng: random.Random) -> Record:
    record: Record = {}
    for spec in FIELD_SPECS:
        record[spec.name] = spec.generator(rng)
    return record


def record_to_json(record: Record) -> Dict[str, Union[str, int]]:
    return {name: v.value for name, v in record.items()}


def serialize_record(record: Record) -> bytes:
    """Pretty-printed JSON, 2-space indent, keys in schema order."""
    return json.dumps(record_to_json(record), indent=2).encode('utf-8')


if __name__ == '__main__':
    print(serialize_record(generate_record(random.Random())).decode('utf-8'))
