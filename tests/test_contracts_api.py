import base64
import unittest

from support import ApiTestCase

from coach_api.core.memory_store import DEFAULT_UNIQUE_KEYS, InMemoryStore

PDF_BYTES = b"%PDF-1.4 contract"
PDF_B64 = base64.b64encode(PDF_BYTES).decode()
SIGNATURE = "data:image/png;base64," + base64.b64encode(b"\x89PNG sig").decode()

SETTINGS = {
    "professor_email": "Prof@x.com",
    "aluno_email": "aluno@x.com",
    "professor_name": "Prof",
    "option1_value": 150,
}


class ContractSettingsTests(ApiTestCase):
    def test_upsert_is_idempotent(self):
        first = self.client.post("/contract-settings", json=SETTINGS)
        second = self.client.post("/contract-settings", json={**SETTINGS, "option1_value": 200})
        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 200)

        rows = self.store.rows("contract_settings")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["professor_email"], "prof@x.com")
        self.assertEqual(rows[0]["option1_value"], 200)

        got = self.client.get("/contract-settings/prof@x.com/aluno@x.com").json()
        self.assertEqual(got["option1_value"], 200)

    def test_missing_settings_read_as_empty_object(self):
        resp = self.client.get("/contract-settings/prof@x.com/nobody@x.com")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {})

    def test_required_fields(self):
        resp = self.client.post("/contract-settings", json={"professor_email": "p@x.com"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "aluno_email is required")


class ContractSettingsWithoutConstraintTests(ApiTestCase):
    def make_store(self):
        keys = {k: v for k, v in DEFAULT_UNIQUE_KEYS.items() if k != "contract_settings"}
        return InMemoryStore(unique_keys=keys)

    def test_falls_back_to_update_then_insert(self):
        self.assertEqual(self.client.post("/contract-settings", json=SETTINGS).status_code, 200)
        resp = self.client.post("/contract-settings", json={**SETTINGS, "option1_value": 300})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()[0]["option1_value"], 300)

        rows = self.store.rows("contract_settings")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["option1_value"], 300)


class ContractSettingsMissingTableTests(ApiTestCase):
    def make_store(self):
        return InMemoryStore(missing_tables=["contract_settings"])

    def test_missing_table_names_the_setup_script(self):
        resp = self.client.post("/contract-settings", json=SETTINGS)
        self.assertEqual(resp.status_code, 500)
        body = resp.json()
        self.assertIn("create_contract_settings_table.sql", body["error"])
        self.assertEqual(body["code"], "PGRST205")


class ContractTests(ApiTestCase):
    def test_create_with_embedded_pdf_and_download(self):
        resp = self.client.post(
            "/contracts",
            json={
                "aluno_email": "Aluno@x.com",
                "professor_email": "prof@x.com",
                "pdf_base64": "data:application/pdf;base64," + PDF_B64,
                "dados": {"plano": "mensal", "signature": SIGNATURE},
            },
        )
        self.assertEqual(resp.status_code, 200)
        created = resp.json()[0]
        self.assertEqual(created["aluno_email"], "aluno@x.com")
        self.assertTrue(created["arquivo_path"].startswith("uploads/contracts/contract_"))
        self.assertTrue(created["signature_path"].endswith(".png"))
        self.assertNotIn("signature", created["dados"])
        self.assertNotIn("pdf_base64", created)

        pdf = self.client.get(f"/contracts/{created['id']}/pdf")
        self.assertEqual(pdf.status_code, 200)
        self.assertEqual(pdf.content, PDF_BYTES)

    def test_multipart_upload(self):
        resp = self.client.post(
            "/contracts",
            data={"aluno_email": "aluno@x.com", "dados": '{"plano": "anual"}'},
            files={"file": ("assinado.pdf", PDF_BYTES, "application/pdf")},
        )
        self.assertEqual(resp.status_code, 200)
        created = resp.json()[0]
        self.assertTrue(created["arquivo_path"].endswith("_assinado.pdf"))
        self.assertEqual(created["dados"], {"plano": "anual"})
        self.assertEqual(self.client.get(f"/contracts/{created['id']}/pdf").content, PDF_BYTES)

    def test_optional_columns_are_dropped_when_rejected(self):
        self.store.table_columns["contracts"] = {"aluno_email", "arquivo_path"}
        resp = self.client.post(
            "/contracts",
            json={"aluno_email": "aluno@x.com", "professor_email": "p@x.com", "dados": {"a": 1}},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(set(resp.json()[0]), {"id", "aluno_email", "arquivo_path"})

    def test_pdf_not_found_cases(self):
        self.seed("contracts", {"aluno_email": "a@x.com", "arquivo_path": None})
        self.seed("contracts", {"aluno_email": "b@x.com", "arquivo_path": "uploads/contracts/gone.pdf"})
        self.assertEqual(self.client.get("/contracts/1/pdf").json(), {"error": "No PDF for this contract."})
        self.assertEqual(self.client.get("/contracts/2/pdf").json(), {"error": "Contract file not found."})
        self.assertEqual(self.client.get("/contracts/9/pdf").status_code, 404)

    def test_pdf_path_outside_uploads_is_refused(self):
        self.seed("contracts", {"aluno_email": "a@x.com", "arquivo_path": "../../etc/passwd"})
        self.assertEqual(self.client.get("/contracts/1/pdf").status_code, 404)

    def test_contracts_for_professor(self):
        self.seed(
            "users",
            {"email": "a@x.com", "tipo": "aluno", "criado_por": "prof@x.com"},
            {"email": "b@x.com", "tipo": "aluno", "criado_por": "other@x.com"},
        )
        self.seed("contracts", {"aluno_email": "A@x.com"}, {"aluno_email": "b@x.com"})
        rows = self.client.get("/contracts/professor/Prof@x.com").json()
        self.assertEqual([r["id"] for r in rows], [1])
        self.assertEqual(self.client.get("/contracts/professor/nobody@x.com").json(), [])
        self.assertEqual(len(self.client.get("/contracts-debug/all").json()), 2)

    def test_delete_checks_owner(self):
        self.seed("contracts", {"aluno_email": "a@x.com", "professor_email": "prof@x.com"})
        forbidden = self.client.delete("/contracts/1", params={"professor_email": "intruder@x.com"})
        self.assertEqual(forbidden.status_code, 403)
        self.assertEqual(len(self.store.rows("contracts")), 1)

        ok = self.client.delete("/contracts/1", params={"professor_email": "PROF@x.com"})
        self.assertEqual(ok.json(), {"deleted": True})
        self.assertEqual(self.client.get("/contracts/1").status_code, 404)

    def test_delete_without_actor(self):
        self.seed("contracts", {"aluno_email": "a@x.com", "criado_por": "prof@x.com"})
        self.assertEqual(self.client.delete("/contracts/1").status_code, 200)
        self.assertEqual(self.client.delete("/contracts/1").status_code, 404)


if __name__ == "__main__":
    unittest.main()
