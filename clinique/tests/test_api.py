from datetime import timedelta

from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APITestCase

from clinique.models import Medecin, Patient, RendezVous, User


class ClinicApiTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.admin = User.objects.create_user(username="admin", password="x", role="admin")
        self.medecin = User.objects.create_user(username="dr", password="x", role="medecin")
        self.infirmier = User.objects.create_user(username="inf", password="x", role="infirmier")
        self.secretaire = User.objects.create_user(username="sec", password="x", role="secretaire")
        self.dr_benali = Medecin.objects.create(nom="Benali", prenom="Yacine", specialite="Diabétologie")
        self.today = timezone.localdate()

    def authenticate(self, user):
        self.client.force_authenticate(user=user)

    def book(self, **overrides):
        data = dict(patient="Karim D.", medecin="Dr Benali", type="Consultation", date=self.today,
                    heure="10:00", statut="Confirmé")
        data.update(overrides)
        return RendezVous.objects.create(**data)

    # -- auth --------------------------------------------------------------

    def test_requires_authentication(self):
        resp = self.client.get("/api/patients")
        self.assertIn(resp.status_code, (401, 403))
        self.assertFalse(resp.data["ok"])

    def test_me_lists_role_sections(self):
        self.authenticate(self.infirmier)
        resp = self.client.get("/api/auth/me")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["user"]["role"], "infirmier")
        self.assertEqual(resp.data["user"]["sections"], ["dashboard", "patients", "planning"])

    # -- patients ----------------------------------------------------------

    def test_patient_lifecycle(self):
        self.authenticate(self.secretaire)
        resp = self.client.post("/api/patients", {
            "nom": "Haddad", "prenom": "Sara", "age": 47, "diabete": "Type 2",
            "etatCivil": {"profession": "Enseignante"},
            "diagnostic": {"facteursRisque": {"hta": True}},
        }, format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        pid = resp.data["id"]
        self.assertEqual(resp.data["nomComplet"], "Sara Haddad")
        self.assertEqual(resp.data["etatCivil"]["profession"], "Enseignante")
        self.assertEqual([h["statut"] for h in resp.data["statutHistory"]], ["nouveau"])

        resp = self.client.put(f"/api/patients/{pid}", {"statut": "sous_trt"}, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["statut"], "sous_trt")
        self.assertEqual([h["statut"] for h in resp.data["statutHistory"]], ["nouveau", "sous_trt"])

        resp = self.client.get("/api/patients", {"statut": "sous_trt"})
        self.assertEqual([p["id"] for p in resp.data], [pid])

        resp = self.client.delete(f"/api/patients/{pid}")
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(Patient.objects.exists())

    def test_patient_name_is_required(self):
        self.authenticate(self.medecin)
        resp = self.client.post("/api/patients", {"prenom": "Sara"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"]["code"], "api_error")
        self.assertEqual(resp.data["error"]["message"]["nom"][0], "Le nom est obligatoire")

    def test_infirmier_reads_but_cannot_write(self):
        self.authenticate(self.infirmier)
        self.assertEqual(self.client.get("/api/patients").status_code, 200)
        self.assertEqual(self.client.post("/api/patients", {"nom": "X"}, format="json").status_code, 403)
        self.assertEqual(self.client.get("/api/rendez-vous").status_code, 200)
        resp = self.client.post("/api/rendez-vous", {"patient": "X", "medecin": "Dr Benali", "type": "Urgence",
                                                     "date": str(self.today), "heure": "09:00"}, format="json")
        self.assertEqual(resp.status_code, 403)

    # -- medecins ----------------------------------------------------------

    def test_roster_writes_are_admin_only(self):
        self.authenticate(self.secretaire)
        resp = self.client.get("/api/medecins")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data[0]["nomComplet"], "Yacine Benali")
        self.assertEqual(self.client.post("/api/medecins", {"nom": "Saidi"}, format="json").status_code, 403)

        self.authenticate(self.admin)
        resp = self.client.post("/api/medecins", {"nom": "Saidi", "status": "En congé"}, format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        resp = self.client.patch(f"/api/medecins/{resp.data['id']}", {"status": "En service"}, format="json")
        self.assertEqual(resp.data["status"], "En service")

    # -- planning ----------------------------------------------------------

    def test_double_booking_returns_409(self):
        self.book(patient="A")
        self.book(patient="B")
        self.authenticate(self.secretaire)
        resp = self.client.post("/api/rendez-vous", {
            "patient": "C", "medecin": "Dr Benali", "type": "Consultation",
            "date": str(self.today), "heure": "10:00",
        }, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["error"]["code"], "conflit_horaire")
        self.assertEqual(resp.data["error"]["message"], "Ce médecin a déjà un rendez-vous prévu à cette heure")
        self.assertEqual(RendezVous.objects.count(), 2)

    def test_missing_time_is_rejected(self):
        self.authenticate(self.medecin)
        resp = self.client.post("/api/rendez-vous", {
            "patient": "C", "medecin": "Dr Benali", "type": "Consultation", "date": str(self.today),
        }, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"]["message"]["heure"][0], "Veuillez sélectionner une heure")

    def test_booking_and_rescheduling(self):
        self.authenticate(self.secretaire)
        resp = self.client.post("/api/rendez-vous", {
            "patient": "C", "medecin": "Dr Benali", "medecinId": self.dr_benali.id, "type": "Contrôle",
            "date": str(self.today), "heure": "9:30",
        }, format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["heure"], "09:30")
        rid = resp.data["id"]

        resp = self.client.put(f"/api/rendez-vous/{rid}", {"notes": "à jeun"}, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)

        self.book(heure="11:00")
        resp = self.client.patch(f"/api/rendez-vous/{rid}", {"heure": "11:00"}, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(RendezVous.objects.get(pk=rid).heure, "09:30")

    def test_planning_filters_by_day(self):
        self.authenticate(self.secretaire)
        self.book(heure="09:00")
        self.book(heure="09:00", date=self.today - timedelta(days=1))
        resp = self.client.get(f"/api/rendez-vous?date={self.today}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 1)

        for bad in ("2024-13-45", "demain"):
            resp = self.client.get(f"/api/rendez-vous?date={bad}")
            self.assertEqual(resp.status_code, 400)
            self.assertEqual(resp.data["error"]["code"], "api_error")

    # -- consultations -----------------------------------------------------

    def test_consultations_need_medecin_role_to_write(self):
        patient = Patient.objects.create(nom="Haddad")
        payload = {"patientId": patient.id, "medecinId": self.dr_benali.id, "date": timezone.now().isoformat(),
                   "type": "Suivi", "montant": "2500.00"}
        self.authenticate(self.secretaire)
        self.assertEqual(self.client.post("/api/consultations", payload, format="json").status_code, 403)

        self.authenticate(self.medecin)
        resp = self.client.post("/api/consultations", payload, format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["patient"], "Haddad")
        self.assertEqual(resp.data["medecin"], "Yacine Benali")

    def test_consultations_reject_a_non_numeric_patient_filter(self):
        self.authenticate(self.medecin)
        resp = self.client.get("/api/consultations?patientId=abc")
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(resp.data["ok"])

    # -- dashboard & notifications -----------------------------------------

    def test_dashboard_stats_follow_writes(self):
        self.authenticate(self.medecin)
        resp = self.client.get("/api/stats/dashboard")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data["occupationData"]), 12)
        self.assertEqual(resp.data["overview"]["totalPatients"], 0)

        self.client.post("/api/patients", {"nom": "Haddad"}, format="json")
        resp = self.client.get("/api/stats/dashboard")
        self.assertEqual(resp.data["overview"]["totalPatients"], 1)
        self.assertEqual(resp.data["newPatientsData"][-1]["count"], 1)

    def test_weekly_summaries(self):
        self.book(type="Urgence")
        self.book(heure="11:00")
        self.book(heure="12:00", statut="En attente")
        self.authenticate(self.infirmier)
        resp = self.client.get("/api/stats/weekly", {"weeks": 4})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data["data"]), 4)
        current = resp.data["data"][-1]
        self.assertEqual(current["rendezVous"], 2)
        self.assertEqual(current["urgences"], 1)
        self.assertEqual(current["occupancy"], 2.0)

        self.assertEqual(self.client.get("/api/stats/weekly", {"weeks": 500}).data["weeks"], 52)
        self.assertEqual(self.client.get("/api/stats/weekly", {"weeks": "x"}).status_code, 400)

    def test_feed_ranks_urgences_first(self):
        Medecin.objects.create(nom="Saidi", status="En congé")
        self.book(patient="A", heure="08:00")
        self.book(patient="B", heure="08:30", type="Urgence")
        self.authenticate(self.secretaire)
        resp = self.client.get("/api/notifications/feed")
        self.assertEqual(resp.status_code, 200)
        items = resp.data["data"]
        self.assertEqual(items[0]["title"], "URGENCE")
        self.assertEqual(items[0]["color"], "#ef4444")
        self.assertIn("Médecins en congé", [n["title"] for n in items])
        weights = {"high": 3, "medium": 2, "low": 1}
        ranks = [weights[n["priority"]] for n in items]
        self.assertEqual(ranks, sorted(ranks, reverse=True))

    def test_notification_center(self):
        rdv = self.book(type="Urgence", heure="00:00")
        self.authenticate(self.medecin)

        resp = self.client.get("/api/notifications/center")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([t["id"] for t in resp.data["toasts"]], [f"urgent-{rdv.id}"])
        unread = resp.data["unreadCount"]
        self.assertGreaterEqual(unread, 1)

        resp = self.client.get("/api/notifications/center")
        self.assertEqual(resp.data["toasts"], [])

        resp = self.client.post("/api/notifications/center/activate", {"id": f"urgent-{rdv.id}"}, format="json")
        self.assertEqual(resp.data["actionUrl"], "/planning")
        self.assertEqual(resp.data["unreadCount"], unread - 1)

        resp = self.client.post("/api/notifications/center/read-all", format="json")
        self.assertEqual(resp.data["unreadCount"], 0)

        self.assertEqual(self.client.post("/api/notifications/center/read", {}, format="json").status_code, 400)
        resp = self.client.post("/api/notifications/center/delete", {"id": "inconnu"}, format="json")
        self.assertEqual(resp.status_code, 404)

        resp = self.client.post("/api/notifications/center/delete", {"id": f"urgent-{rdv.id}"}, format="json")
        self.assertEqual(resp.status_code, 200)
        resp = self.client.get("/api/notifications/center")
        self.assertNotIn(f"urgent-{rdv.id}", [n["id"] for n in resp.data["items"]])

        # each user has a separate center
        self.authenticate(self.secretaire)
        resp = self.client.get("/api/notifications/center")
        self.assertEqual([t["id"] for t in resp.data["toasts"]], [f"urgent-{rdv.id}"])

