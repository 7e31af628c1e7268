import re

from ordering.order.numbering import ALPHABET, generate_order_number

PATTERN = re.compile(r"^ALN-[0-9A-HJKMNP-TV-Z]+-[0-9A-HJKMNP-TV-Z]{8}$")


def test_order_number_format():
    assert PATTERN.match(generate_order_number())


def test_prefix_is_configurable():
    assert generate_order_number("SHOP").startswith("SHOP-")


def test_timestamp_part_is_base32():
    number = generate_order_number(now_ms=32**3)
    assert number.split("-")[1] == "1000"


def test_no_easily_confused_characters():
    assert not set("ILOU") & set(ALPHABET)
    for _ in range(50):
        _, timestamp, suffix = generate_order_number().split("-")
        assert not set("ILOU") & set(timestamp + suffix)


def test_numbers_in_the_same_millisecond_differ():
    numbers = {generate_order_number(now_ms=1_700_000_000_000) for _ in range(50)}
    assert len(numbers) == 50
