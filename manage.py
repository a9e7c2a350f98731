import argparse
import logging

from officina import create_app
from officina.catalog import ParameterCatalog
from officina.controls import migrate_controls
from officina.inspection import catalog_defaults
from officina.paths import VEHICLES_PATH
from officina.storage import get_store

app = create_app()


def list_parameters():
    with app.app_context():
        parameters = ParameterCatalog(get_store()).load()
        if not parameters:
            print("Nessun parametro presente.")
            return
        for p in parameters.values():
            print(f"- id={p.id} nome={p.name} sezione={p.section} default={p.default_state.value}")


def seed_parameters():
    with app.app_context():
        created = ParameterCatalog(get_store()).seed(catalog_defaults())
        print(f"Parametri aggiunti: {len(created)}")


def migrate_vehicle_controls(vehicle_ids):
    with app.app_context():
        store = get_store()
        if not vehicle_ids:
            vehicles = store.read(VEHICLES_PATH) or {}
            vehicle_ids = list(vehicles.keys())
        migrated = 0
        for vehicle_id in vehicle_ids:
            source = migrate_controls(store, vehicle_id)
            if source is None:
                print(f"- {vehicle_id}: nessun controllo trovato")
                continue
            migrated += 1
            print(f"- {vehicle_id}: controlli copiati da {source}")
        print(f"Veicoli migrati: {migrated}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="Utility gestione checklist")
    parser.add_argument("cmd", choices=["list-parameters", "seed-parameters", "migrate-controls"])
    parser.add_argument("vehicles", nargs="*", help="id dei veicoli da migrare (default: tutti)")
    args = parser.parse_args()

    if args.cmd == "list-parameters":
        list_parameters()
    elif args.cmd == "seed-parameters":
        seed_parameters()
    elif args.cmd == "migrate-controls":
        migrate_vehicle_controls(args.vehicles)
