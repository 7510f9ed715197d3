from docsanitizer.pseudonymizer.placeholders import PlaceholderAllocator, placeholder_family


def test_placeholder_family():
    assert placeholder_family("<EMAIL_{n}>") == "<EMAIL_>"


def test_allocate_new():
    allocator = PlaceholderAllocator()
    assert allocator.allocate("<PERSON_{n}>", "John Smith") == "<PERSON_1>"


def test_allocate_same_text_returns_same():
    allocator = PlaceholderAllocator()
    r1 = allocator.allocate("<PERSON_{n}>", "John Smith")
    r2 = allocator.allocate("<PERSON_{n}>", "John Smith")
    r3 = allocator.allocate("<PERSON_{n}>", "John Smith")
    assert r1 == r2 == r3 == "<PERSON_1>"


def test_allocate_different_texts():
    allocator = PlaceholderAllocator()
    assert allocator.allocate("<PERSON_{n}>", "John Smith") == "<PERSON_1>"
    assert allocator.allocate("<PERSON_{n}>", "Jane Doe") == "<PERSON_2>"


def test_allocate_families_are_independent():
    allocator = PlaceholderAllocator()
    assert allocator.allocate("<EMAIL_{n}>", "a@x.com") == "<EMAIL_1>"
    assert allocator.allocate("<PHONE_{n}>", "555-1234") == "<PHONE_1>"


def test_rules_sharing_a_template_share_numbering():
    allocator = PlaceholderAllocator()
    assert allocator.allocate("<IBAN_{n}>", "SA0380000000608010167519") == "<IBAN_1>"
    assert allocator.allocate("<IBAN_{n}>", "DE89370400440532013000") == "<IBAN_2>"


def test_normalization_case_and_outer_whitespace():
    allocator = PlaceholderAllocator()
    r1 = allocator.allocate("<PERSON_{n}>", "  john smith ")
    r2 = allocator.allocate("<PERSON_{n}>", "JOHN SMITH")
    assert r1 == r2


def test_peek_and_count():
    allocator = PlaceholderAllocator()
    assert allocator.peek("<EMAIL_{n}>", "a@x.com") is None
    allocator.allocate("<EMAIL_{n}>", "a@x.com")
    allocator.allocate("<EMAIL_{n}>", "b@x.com")
    assert allocator.peek("<EMAIL_{n}>", "B@X.COM") == 2
    assert allocator.count("<EMAIL_{n}>") == 2
    assert allocator.count("<PHONE_{n}>") == 0


def test_reset_restarts_numbering():
    allocator = PlaceholderAllocator()
    allocator.allocate("<EMAIL_{n}>", "a@x.com")
    allocator.allocate("<EMAIL_{n}>", "b@x.com")
    allocator.reset()
    assert allocator.allocate("<EMAIL_{n}>", "b@x.com") == "<EMAIL_1>"
