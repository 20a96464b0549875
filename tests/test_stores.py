import json
import os
import unittest
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest import mock

import httpx

from coach_api.core import db, dependencies
from coach_api.core.db import PostgresStore, build_delete, build_insert, build_select, build_update, coerce_arg
from coach_api.core.memory_store import InMemoryStore
from coach_api.core.rest_store import PostgrestStore
from coach_api.core.store import NotConfiguredStore, StoreError, StoreErrorKind, asc, desc, select_optional


class InMemoryStoreTests(unittest.IsolatedAsyncioTestCase):
    async def test_insert_assigns_ids_and_select_filters_as_text(self):
        store = InMemoryStore()
        await store.insert("treinos", [{"aluno_email": "a@x.com"}, {"aluno_email": "b@x.com"}])
        rows = await store.select("treinos", filters={"id": "2"})
        self.assertEqual(rows, [{"id": 2, "aluno_email": "b@x.com"}])

    async def test_order_limit_offset(self):
        store = InMemoryStore()
        await store.insert("posts", [{"criado_em": f"2024-01-0{i}"} for i in range(1, 6)])
        rows = await store.select("posts", columns="id", order=[desc("criado_em")], limit=2, offset=1)
        self.assertEqual([r["id"] for r in rows], [4, 3])
        rows = await store.select("posts", columns="id", order=[asc("criado_em")], limit=2)
        self.assertEqual([r["id"] for r in rows], [1, 2])

    async def test_unique_violation(self):
        store = InMemoryStore()
        await store.insert("users", {"email": "a@x.com"})
        with self.assertRaises(StoreError) as ctx:
            await store.insert("users", {"email": "a@x.com"})
        self.assertIs(ctx.exception.kind, StoreErrorKind.UNIQUE_VIOLATION)

    async def test_upsert_requires_declared_key(self):
        store = InMemoryStore(unique_keys={})
        with self.assertRaises(StoreError) as ctx:
            await store.upsert("contract_settings", {"professor_email": "p", "aluno_email": "a"}, on_conflict=("professor_email", "aluno_email"))
        self.assertIs(ctx.exception.kind, StoreErrorKind.MISSING_CONFLICT_CONSTRAINT)

    async def test_upsert_merges_existing_row(self):
        store = InMemoryStore()
        key = ("professor_email", "aluno_email")
        await store.upsert("contract_settings", {"professor_email": "p", "aluno_email": "a", "option1_value": 1}, on_conflict=key)
        await store.upsert("contract_settings", {"professor_email": "p", "aluno_email": "a", "option1_value": 2}, on_conflict=key)
        rows = await store.select("contract_settings")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["option1_value"], 2)

    async def test_missing_table_and_optional_select(self):
        store = InMemoryStore(missing_tables=["progresso"])
        with self.assertRaises(StoreError) as ctx:
            await store.select("progresso")
        self.assertIs(ctx.exception.kind, StoreErrorKind.TABLE_NOT_FOUND)
        self.assertEqual(await select_optional(store, "progresso"), [])

    async def test_unknown_column(self):
        store = InMemoryStore(table_columns={"contracts": {"aluno_email", "arquivo_path"}})
        with self.assertRaises(StoreError) as ctx:
            await store.insert("contracts", {"aluno_email": "a", "dados": {}})
        self.assertIs(ctx.exception.kind, StoreErrorKind.UNDEFINED_COLUMN)


class PostgrestStoreTests(unittest.IsolatedAsyncioTestCase):
    def make_store(self, handler) -> PostgrestStore:
        return PostgrestStore(
            base_url="https://example.supabase.co/",
            api_key="service-key",
            transport=httpx.MockTransport(handler),
        )

    async def test_select_builds_query(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=[{"id": 1}])

        store = self.make_store(handler)
        rows = await store.select(
            "users",
            columns="id,email",
            filters={"email": "a@x.com", "blocked": None, "ativo": True},
            order=[desc("id")],
            limit=5,
            offset=10,
        )
        await store.aclose()

        request = seen["request"]
        self.assertEqual(rows, [{"id": 1}])
        self.assertEqual(request.method, "GET")
        self.assertEqual(request.url.path, "/rest/v1/users")
        self.assertEqual(request.headers["apikey"], "service-key")
        self.assertEqual(request.headers["authorization"], "Bearer service-key")
        params = request.url.params
        self.assertEqual(params["select"], "id,email")
        self.assertEqual(params["email"], "eq.a@x.com")
        self.assertEqual(params["blocked"], "is.null")
        self.assertEqual(params["ativo"], "eq.true")
        self.assertEqual(params["order"], "id.desc")
        self.assertEqual(params["limit"], "5")
        self.assertEqual(params["offset"], "10")

    async def test_count_reads_content_range(self):
        def handler(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.headers["prefer"], "count=exact")
            return httpx.Response(200, json=[], headers={"Content-Range": "*/42"})

        store = self.make_store(handler)
        self.assertEqual(await store.count("curtidas", filters={"post_id": 3}), 42)
        await store.aclose()

    async def test_upsert_sends_conflict_target(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(201, json=json.loads(request.content))

        store = self.make_store(handler)
        rows = await store.upsert("settings", {"chave": "loja", "valor": True}, on_conflict=("chave",))
        await store.aclose()

        request = seen["request"]
        self.assertEqual(request.method, "POST")
        self.assertEqual(request.url.params["on_conflict"], "chave")
        self.assertIn("resolution=merge-duplicates", request.headers["prefer"])
        self.assertEqual(rows, [{"chave": "loja", "valor": True}])

    async def test_error_codes_map_to_kinds(self):
        cases = {
            "PGRST205": StoreErrorKind.TABLE_NOT_FOUND,
            "42P10": StoreErrorKind.MISSING_CONFLICT_CONSTRAINT,
            "23505": StoreErrorKind.UNIQUE_VIOLATION,
            "PGRST204": StoreErrorKind.UNDEFINED_COLUMN,
            "XX000": StoreErrorKind.OTHER,
        }
        for code, kind in cases.items():
            def handler(request: httpx.Request, code=code) -> httpx.Response:
                return httpx.Response(400, json={"code": code, "message": "boom", "details": None})

            store = self.make_store(handler)
            with self.assertRaises(StoreError) as ctx:
                await store.insert("contracts", {"aluno_email": "a"})
            await store.aclose()
            self.assertIs(ctx.exception.kind, kind, code)
            self.assertEqual(ctx.exception.code, code)

    async def test_timeout_and_transport_errors(self):
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        def refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        for handler, kind in ((timeout, StoreErrorKind.TIMEOUT), (refused, StoreErrorKind.UNAVAILABLE)):
            store = self.make_store(handler)
            with self.assertRaises(StoreError) as ctx:
                await store.select("users")
            await store.aclose()
            self.assertIs(ctx.exception.kind, kind)

    async def test_update_requires_filters(self):
        store = self.make_store(lambda request: httpx.Response(200, json=[]))
        with self.assertRaises(ValueError):
            await store.update("users", {"foto": "x"}, filters={})
        await store.aclose()


class SqlBuilderTests(unittest.TestCase):
    def test_build_select(self):
        sql, args = build_select(
            "posts",
            columns="id, criado_em",
            filters={"autor_email": "a@x.com", "imagem_url": None},
            order=[desc("criado_em")],
            limit=20,
            offset=40,
        )
        self.assertEqual(
            sql,
            'SELECT "id", "criado_em" FROM "posts" WHERE "autor_email" = $1 AND "imagem_url" IS NULL'
            ' ORDER BY "criado_em" DESC LIMIT $2 OFFSET $3',
        )
        self.assertEqual(args, ["a@x.com", 20, 40])

    def test_build_insert_with_conflict(self):
        sql, args = build_insert(
            "contract_settings",
            {"professor_email": "p", "aluno_email": "a", "option1_value": 1},
            on_conflict=("professor_email", "aluno_email"),
        )
        self.assertEqual(
            sql,
            'INSERT INTO "contract_settings" ("professor_email", "aluno_email", "option1_value") VALUES ($1, $2, $3)'
            ' ON CONFLICT ("professor_email", "aluno_email") DO UPDATE SET "option1_value" = EXCLUDED."option1_value"'
            " RETURNING *",
        )
        self.assertEqual(args, ["p", "a", 1])

    def test_build_update_and_delete(self):
        sql, args = build_update("users", {"foto": "f.png"}, {"id": 3})
        self.assertEqual(sql, 'UPDATE "users" SET "foto" = $1 WHERE "id" = $2 RETURNING *')
        self.assertEqual(args, ["f.png", 3])
        sql, args = build_delete("mensagens", {"id": 9})
        self.assertEqual(sql, 'DELETE FROM "mensagens" WHERE "id" = $1 RETURNING *')
        self.assertEqual(args, [9])

    def test_identifiers_are_quoted(self):
        sql, _ = build_select('odd"name')
        self.assertEqual(sql, 'SELECT * FROM "odd""name"')

    def test_coerce_arg(self):
        self.assertEqual(coerce_arg("int8", "5"), 5)
        self.assertEqual(coerce_arg("float8", "72.5"), 72.5)
        self.assertEqual(coerce_arg("numeric", 1.5), Decimal("1.5"))
        self.assertTrue(coerce_arg("bool", "true"))
        self.assertEqual(coerce_arg("text", {"a": 1}), '{"a": 1}')
        self.assertEqual(coerce_arg("timestamptz", "2030-01-01"), datetime(2030, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(coerce_arg("date", "2030-01-01T10:00:00Z"), date(2030, 1, 1))
        self.assertIsNone(coerce_arg("int8", None))
        with self.assertRaises(StoreError):
            coerce_arg("timestamptz", "soon")


class PostgresStartupTests(unittest.IsolatedAsyncioTestCase):
    async def test_unreachable_database_is_unavailable(self):
        refused = mock.AsyncMock(side_effect=OSError("connection refused"))
        with mock.patch.object(db.asyncpg, "create_pool", refused):
            with self.assertRaises(StoreError) as ctx:
                await PostgresStore("postgresql://coach@db:5432/coach").open()
        self.assertIs(ctx.exception.kind, StoreErrorKind.UNAVAILABLE)

    async def test_build_store_falls_back_to_not_configured(self):
        env = {"COACH_STORE_BACKEND": "postgres", "DATABASE_URL": "postgresql://coach@db:5432/coach"}
        down = mock.AsyncMock(side_effect=StoreError("Database is unreachable", kind=StoreErrorKind.UNAVAILABLE))
        with mock.patch.dict(os.environ, env), mock.patch.object(PostgresStore, "open", down):
            store = await dependencies.build_store()
        self.assertIsInstance(store, NotConfiguredStore)


if __name__ == "__main__":
    unittest.main()
