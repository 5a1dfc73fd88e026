#!/usr/bin/env python3
"""Seed development data into DynamoDB."""

import argparse
import os
import sys
from datetime import datetime, timedelta, timezone

# Add the shared layer to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src", "layers", "shared", "python"))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed development data")
    parser.add_argument("--stage", default="dev", help="Deployment stage")
    parser.add_argument("--region", default="eu-central-1", help="AWS region")
    parser.add_argument("--tenant", default="demo-tenant", help="Tenant ID to seed")
    args = parser.parse_args()

    os.environ["TABLE_NAME"] = f"cleanstay-{args.stage}"
    os.environ.setdefault("AWS_DEFAULT_REGION", args.region)
    print(f"Seeding data to table: {os.environ['TABLE_NAME']}")

    # Imported after TABLE_NAME is set
    from cleanstay.models.cleaning import Cleaning, CleaningStatus
    from cleanstay.models.lead import Lead, LeadSource
    from cleanstay.models.property import CleaningSupplies, Property, PropertyType
    from cleanstay.repositories.cleaning import CleaningRepository
    from cleanstay.repositories.lead import LeadRepository
    from cleanstay.repositories.property import PropertyRepository

    properties = [
        Property(
            id="property-karlin",
            tenant_id=args.tenant,
            client_id="demo-client",
            name="Karlín 2+kk",
            address="Sokolovská 12, Praha 8",
            type=PropertyType.APARTMENT,
            size_sqm=52,
            layout="2+kk",
            cleaning_supplies=CleaningSupplies.OURS,
            access_instructions="Klíče v boxu u vchodu, kód 2468",
        ),
        Property(
            id="property-office",
            tenant_id=args.tenant,
            client_id="demo-client",
            name="Kancelář Vinohrady",
            address="Mánesova 5, Praha 2",
            type=PropertyType.OFFICE,
            size_sqm=120,
        ),
    ]

    property_repo = PropertyRepository()
    for prop in properties:
        property_repo.put(prop)
        print(f"Created property: {prop.name}")

    tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).replace(
        hour=8, minute=0, second=0, microsecond=0
    )
    cleanings = [
        Cleaning(
            id="cleaning-demo-1",
            tenant_id=args.tenant,
            property_id="property-karlin",
            client_id="demo-client",
            status=CleaningStatus.SCHEDULED,
            scheduled_date=tomorrow,
            scheduled_end=tomorrow + timedelta(hours=2),
            price_czk=1390,
        ),
        Cleaning(
            id="cleaning-demo-2",
            tenant_id=args.tenant,
            property_id="property-office",
            client_id="demo-client",
            status=CleaningStatus.SCHEDULED,
            scheduled_date=tomorrow + timedelta(hours=10),
            scheduled_end=tomorrow + timedelta(hours=13),
            price_czk=2500,
        ),
    ]

    cleaning_repo = CleaningRepository()
    for cleaning in cleanings:
        cleaning_repo.put(cleaning)
        print(f"Created cleaning: {cleaning.id} at {cleaning.scheduled_date.isoformat()}")

    lead = Lead(
        id="lead-demo-1",
        tenant_id=args.tenant,
        source=LeadSource.CONTACT_FORM,
        name="Jana Nováková",
        email="jana@example.com",
        consent=True,
        service_type="airbnb",
        city="Praha",
        size_m2=48,
        message="Dobrý den, sháníme pravidelný úklid po hostech.",
    )
    LeadRepository().put(lead)
    print(f"Created lead: {lead.name}")

    print("\nSeeding complete!")
    print(f"\nSet DEFAULT_TENANT_ID={args.tenant} for the public endpoints.")


if __name__ == "__main__":
    main()
