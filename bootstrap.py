from officina import create_app
from officina.catalog import ParameterCatalog
from officina.extensions import db
from officina.inspection import catalog_defaults
from officina.storage import get_store

app = create_app()

with app.app_context():
    db.create_all()

    catalog = ParameterCatalog(get_store())
    created = catalog.seed(catalog_defaults())
    if created:
        print('--- PARAMETRI CHECKLIST CREATI ---')
        for parameter_id in created:
            print(f'- {parameter_id}')
    else:
        print('Catalogo parametri già presente.')

    print('Database pronto.')
