"""
National ranking ingestion (DTFB).

Same flow as the ITSF ingestor, with national semantics:

- a DTFB id is missing when no stored player carries it as ``dtfb_id``
- a fetched national profile is attached to the stored player whose
  itsf_id equals the profile's licence number; unknown licences are
  logged and skipped (national data never creates players)
- every linked player in the list gets a NationalRanking for the unit
- there are no photos
"""

from foosrank.players.models import NationalProfile, NationalRanking
from foosrank.players.store import StoreError
from foosrank.scrape.base import NationalRankingUnit
from foosrank.services.ranking_ingestion import RankingIngestor


class DtfbRankingIngestor(RankingIngestor):
    """Ingests DTFB ranking lists into already known players."""

    tag = "[DTFB]"
    fetch_images = False

    def find_missing(self, external_ids: list[int]) -> list[int]:
        linked = self.store.dtfb_links(external_ids)
        missing: list[int] = []
        for dtfb_id in external_ids:
            if dtfb_id not in linked and dtfb_id not in missing:
                missing.append(dtfb_id)
        return missing

    def store_profile(self, external_id: int, profile: NationalProfile) -> bool:
        if not self.store.link_national_profile(profile):
            self.log(
                f"DTFB player {profile.dtfb_id}: licence {profile.itsf_id} "
                f"is not a known ITSF player, skipped"
            )
            return False

        self.log(
            f"Linked DTFB player {profile.dtfb_id} to ITSF player {profile.itsf_id} "
            f"({len(profile.national_rankings)} rankings, "
            f"{len(profile.championship_results)} championship results, "
            f"{len(profile.teams)} teams)"
        )
        return True

    def store_placements(self, unit: NationalRankingUnit, placements: list[tuple[int, int]]) -> int:
        links = self.store.dtfb_links(dtfb_id for _, dtfb_id in placements)
        upserted = 0
        for place, dtfb_id in placements:
            itsf_id = links.get(dtfb_id)
            if itsf_id is None:
                continue
            ranking = NationalRanking(year=unit.year, place=place, category=unit.category)
            try:
                if self.store.upsert_national_ranking(itsf_id, ranking):
                    upserted += 1
            except StoreError as exc:
                self.stats.errors.append(f"ranking {itsf_id}: {exc}")
                self.log(f"Failed to store ranking of player {itsf_id}: {exc}")

        skipped = len(placements) - upserted
        self.stats.rankings_upserted += upserted
        self.stats.rankings_skipped += skipped
        if skipped:
            self.log(f"Skipped rankings of {skipped} DTFB players without an ITSF link")
        return upserted
