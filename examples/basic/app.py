import logging

from nestdb import Connection


def run():
    connection = Connection.from_config(
        {"driver": "sqlite", "database": ":memory:"}
    )
    with connection:
        connection.execute(
            "CREATE TABLE city (id INTEGER PRIMARY KEY, name TEXT)"
        )

        connection.begin_transaction()
        connection.execute("INSERT INTO city (name) VALUES (?)", ["Kabul"])

        connection.begin_transaction()
        connection.execute(
            "INSERT INTO city (name) VALUES (:name)", {"name": "Qandahar"}
        )
        connection.rollback()

        connection.commit()
        print(connection.select("city"))


logging.basicConfig(level=logging.DEBUG)
run()
