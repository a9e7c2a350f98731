from officina.config import DEFAULT_HOST, DEFAULT_PORT, read_server_config


def test_missing_file_uses_defaults(tmp_path):
    assert read_server_config(str(tmp_path / 'nessuno.txt')) == (DEFAULT_HOST, DEFAULT_PORT)


def test_host_and_port(tmp_path):
    path = tmp_path / 'server_config.txt'
    path.write_text('0.0.0.0:8000\n', encoding='utf-8')
    assert read_server_config(str(path)) == ('0.0.0.0', 8000)


def test_host_only_and_bad_port(tmp_path):
    path = tmp_path / 'server_config.txt'
    path.write_text('192.168.1.10', encoding='utf-8')
    assert read_server_config(str(path)) == ('192.168.1.10', DEFAULT_PORT)
    path.write_text('10.0.0.1:abc', encoding='utf-8')
    assert read_server_config(str(path)) == ('10.0.0.1', DEFAULT_PORT)
