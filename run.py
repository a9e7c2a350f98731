"""Avvio del server della checklist officina.

Host e porta si possono cambiare con un file ``server_config.txt``
accanto a questo script (vedi :func:`officina.config.read_server_config`).
"""

import logging
import os

from officina import create_app
from officina.config import read_server_config

app = create_app()

if __name__ == '__main__':
    logging.basicConfig(level=str(app.config['LOG_LEVEL']).upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    host, port = read_server_config(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'server_config.txt'))
    app.run(host=host, port=port, debug=True, use_reloader=False)
