import os

# Flags that are on unless FF_<NAME> says otherwise
DEFAULT_FLAGS = {
    'count_threshold_transitions': True,
}

_FLAGS = {}


def init_flags():
    _FLAGS.clear()
    _FLAGS.update(DEFAULT_FLAGS)
    for key, val in os.environ.items():
        if key.startswith('FF_'):
            flag_name = key[3:].lower()
            _FLAGS[flag_name] = val.lower() in ('true', '1', 'yes')


def is_enabled(flag_name: str) -> bool:
    return _FLAGS.get(flag_name, DEFAULT_FLAGS.get(flag_name, False))


def all_flags() -> dict:
    return {**DEFAULT_FLAGS, **_FLAGS}


def set_flag(flag_name: str, value: bool):
    _FLAGS[flag_name] = value
