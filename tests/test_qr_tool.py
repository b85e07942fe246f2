from tools.make_qr_codes import file_stem, profile_url


def test_profile_url():
    assert profile_url("https://homecook.example/", "abc123") == "https://homecook.example/cooks/abc123"


def test_file_stem():
    assert file_stem("Maria Rossi", "0123456789abcdef") == "maria-rossi__01234567"
    assert file_stem("!!!", "ffffffffff") == "cook__ffffffff"
