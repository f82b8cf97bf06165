"""
Static lookup tables for profile analysis and subsidy scoring

All tables are read-only and built once at import. Tables that are matched
by substring are ordered (pattern, value) tuples, most specific first.
"""
from types import MappingProxyType
from typing import Mapping, Tuple

# Industry-group (first two NAF digits) to sector
NAF_SECTOR_MAP: Mapping[str, str] = MappingProxyType({
    # Agriculture, sylviculture et pêche
    '01': 'Agriculture',
    '02': 'Sylviculture',
    '03': 'Pêche',
    # Industries extractives
    '05': 'Mines',
    '06': 'Énergie',
    '07': 'Mines',
    '08': 'Carrières',
    '09': 'Énergie',
    # Industrie manufacturière
    '10': 'Agroalimentaire',
    '11': 'Agroalimentaire',
    '12': 'Industrie',
    '13': 'Textile',
    '14': 'Textile',
    '15': 'Cuir',
    '16': 'Bois',
    '17': 'Papier',
    '18': 'Imprimerie',
    '19': 'Énergie',
    '20': 'Chimie',
    '21': 'Pharmacie',
    '22': 'Plasturgie',
    '23': 'Matériaux',
    '24': 'Métallurgie',
    '25': 'Métallurgie',
    '26': 'Électronique',
    '27': 'Électronique',
    '28': 'Mécanique',
    '29': 'Automobile',
    '30': 'Aéronautique',
    '31': 'Ameublement',
    '32': 'Industrie',
    '33': 'Industrie',
    # Énergie, eau, déchets
    '35': 'Énergie',
    '36': 'Environnement',
    '37': 'Environnement',
    '38': 'Environnement',
    '39': 'Environnement',
    # Construction
    '41': 'BTP',
    '42': 'BTP',
    '43': 'BTP',
    # Commerce
    '45': 'Commerce',
    '46': 'Commerce',
    '47': 'Commerce',
    # Transport et entreposage
    '49': 'Transport',
    '50': 'Transport',
    '51': 'Transport',
    '52': 'Logistique',
    '53': 'Logistique',
    # Hébergement et restauration
    '55': 'Tourisme',
    '56': 'Restauration',
    # Information et communication
    '58': 'Édition',
    '59': 'Audiovisuel',
    '60': 'Audiovisuel',
    '61': 'Télécommunications',
    '62': 'Numérique',
    '63': 'Numérique',
    # Finance, assurance, immobilier
    '64': 'Finance',
    '65': 'Assurance',
    '66': 'Finance',
    '68': 'Immobilier',
    # Activités spécialisées
    '69': 'Services',
    '70': 'Conseil',
    '71': 'Ingénierie',
    '72': 'R&D',
    '73': 'Communication',
    '74': 'Design',
    '75': 'Santé animale',
    # Services administratifs
    '77': 'Services',
    '78': 'RH',
    '79': 'Tourisme',
    '80': 'Sécurité',
    '81': 'Services',
    '82': 'Services',
    '84': 'Public',
    '85': 'Formation',
    # Santé et action sociale
    '86': 'Santé',
    '87': 'Social',
    '88': 'Social',
    # Arts, spectacles, loisirs
    '90': 'Culture',
    '91': 'Culture',
    '92': 'Jeux',
    '93': 'Sport',
    # Autres services
    '94': 'Associatif',
    '95': 'Services',
    '96': 'Services',
})

# Title keywords that mark a subsidy as aimed at another sector.
# A match in the title hard-filters the subsidy.
SECTOR_EXCLUSIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    'Agriculture': ('musique', 'musical', 'cinéma', 'audiovisuel', 'film', 'spectacle', 'théâtre', 'danse', 'jeux vidéo'),
    'Sylviculture': ('musique', 'cinéma', 'audiovisuel', 'spectacle', 'théâtre'),
    'Pêche': ('musique', 'cinéma', 'audiovisuel', 'spectacle', 'théâtre', 'agricole terrestre'),
    'Industrie': ('musique', 'musical', 'spectacle', 'théâtre', 'danse', 'artistique'),
    'Agroalimentaire': ('musique', 'cinéma', 'spectacle', 'numérique', 'logiciel'),
    'Textile': ('musique', 'cinéma', 'agricole', 'informatique'),
    'Bois': ('musique', 'cinéma', 'spectacle', 'numérique'),
    'Chimie': ('musique', 'cinéma', 'spectacle', 'artistique', 'agricole'),
    'Pharmacie': ('musique', 'cinéma', 'spectacle', 'agricole', 'bâtiment'),
    'Plasturgie': ('musique', 'cinéma', 'spectacle', 'agricole'),
    'Métallurgie': ('musique', 'cinéma', 'spectacle', 'agricole', 'artistique'),
    'Électronique': ('musique', 'spectacle', 'théâtre', 'agricole', 'élevage'),
    'Mécanique': ('musique', 'cinéma', 'spectacle', 'artistique'),
    'Automobile': ('musique', 'cinéma', 'spectacle', 'agricole', 'artistique'),
    'Aéronautique': ('musique', 'cinéma', 'spectacle', 'agricole', 'artistique'),
    'BTP': ('musique', 'musical', 'cinéma', 'film', 'spectacle', 'artistique', 'agricole'),
    'Matériaux': ('musique', 'cinéma', 'spectacle', 'artistique'),
    'Commerce': ('musique', 'musical', 'cinéma', 'film', 'spectacle'),
    'Transport': ('musique', 'cinéma', 'spectacle', 'agricole'),
    'Logistique': ('musique', 'cinéma', 'spectacle', 'artistique'),
    'Tourisme': ('industrie lourde', 'métallurgie', 'chimie'),
    'Restauration': ('industrie lourde', 'métallurgie', 'chimie'),
    'Numérique': ('agriculture', 'élevage', 'pêche', 'sylviculture', 'spectacle vivant'),
    'Télécommunications': ('agriculture', 'élevage', 'spectacle', 'cinéma'),
    'Édition': ('métallurgie', 'chimie', 'agriculture'),
    'Finance': ('musique', 'cinéma', 'spectacle', 'agricole', 'artisanat'),
    'Assurance': ('musique', 'cinéma', 'spectacle', 'agricole'),
    'Immobilier': ('musique', 'cinéma', 'spectacle', 'agricole'),
    'Conseil': ('musique', 'cinéma', 'spectacle', 'agricole'),
    'Ingénierie': ('musique', 'cinéma', 'spectacle', 'artistique'),
    'Design': (),
    'Santé': ('musique', 'cinéma', 'spectacle', 'agricole', 'industrie lourde'),
    'Social': ('industrie', 'manufacture', 'métallurgie'),
    'Santé animale': ('musique', 'cinéma', 'spectacle', 'industrie'),
    'Environnement': ('spectacle', 'cinéma', 'musique'),
    'Énergie': ('spectacle', 'cinéma', 'musique', 'artistique'),
    # Sectors that can match almost anything
    'Culture': (),
    'Audiovisuel': (),
    'R&D': (),
    'Formation': (),
    'Sport': (),
    'Associatif': (),
    'Communication': (),
    'Services': (),
    'Public': (),
})

# Keywords that indicate a subsidy targets a sector
SECTOR_INDICATOR_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    'Agriculture': ('agricole', 'agriculture', 'élevage', 'exploitation agricole', 'filière agricole', 'pac', 'feader',
                    'rural', 'fermier', 'paysan', 'maraîcher', 'viticulture', 'arboriculture'),
    'Sylviculture': ('forestier', 'forêt', 'bois', 'sylviculture', 'filière bois', 'exploitation forestière'),
    'Pêche': ('pêche', 'pêcheur', 'aquaculture', 'maritime', 'conchyliculture', 'ostréiculture', 'feamp'),
    'Agroalimentaire': ('agroalimentaire', 'alimentaire', 'transformation alimentaire', 'iaa', 'food', 'agro-industrie'),
    'Textile': ('textile', 'habillement', 'confection', 'mode', 'couture', 'tissu', 'vêtement'),
    'Bois': ('bois', 'menuiserie', 'charpente', 'ébénisterie', 'biosourcé', 'filière bois', 'scierie'),
    'Papier': ('papier', 'carton', 'emballage', 'imprimerie', 'édition'),
    'Chimie': ('chimie', 'chimique', 'pétrochimie', 'produits chimiques'),
    'Pharmacie': ('pharmaceutique', 'pharmacie', 'médicament', 'biotech', 'biotechnologie', 'santé humaine'),
    'Plasturgie': ('plastique', 'plasturgie', 'caoutchouc', 'polymère', 'composite'),
    'Matériaux': ('matériaux', 'verre', 'céramique', 'béton', 'ciment', 'matériaux de construction'),
    'Métallurgie': ('métallurgie', 'métal', 'sidérurgie', 'fonderie', 'forge', 'usinage', 'chaudronnerie'),
    'Électronique': ('électronique', 'électrique', 'composant', 'semi-conducteur', 'microélectronique', 'capteur'),
    'Mécanique': ('mécanique', 'machine', 'équipement', 'outillage', 'robotique', 'automatisation'),
    'Automobile': ('automobile', 'véhicule', 'constructeur', 'équipementier', 'mobilité'),
    'Aéronautique': ('aéronautique', 'aérospatial', 'aviation', 'spatial', 'défense', 'naval'),
    'Ameublement': ('meuble', 'ameublement', 'mobilier', 'agencement'),
    'Industrie': ('industriel', 'industrie', 'manufacture', 'usine', 'production industrielle', 'atelier', 'fabrication'),
    'BTP': ('bâtiment', 'construction', 'travaux publics', 'btp', 'chantier', 'génie civil', 'rénovation',
            "maîtrise d'ouvrage"),
    'Commerce': ('commerce', 'commercial', 'retail', 'négoce', 'distribution', 'vente', 'détail', 'gros'),
    'Transport': ('transport', 'mobilité', 'fret', 'routier', 'ferroviaire', 'maritime', 'aérien', 'multimodal'),
    'Logistique': ('logistique', 'entreposage', 'supply chain', 'stockage', 'manutention'),
    'Tourisme': ('tourisme', 'touristique', 'hébergement', 'hôtellerie', 'camping', 'loisirs', 'accueil'),
    'Restauration': ('restauration', 'restaurant', 'traiteur', 'café', 'hôtellerie-restauration'),
    'Numérique': ('numérique', 'digital', 'logiciel', 'informatique', 'tech', 'startup', 'saas', 'cloud', 'data', 'ia',
                  'intelligence artificielle'),
    'Télécommunications': ('télécom', 'télécommunications', 'réseau', 'fibre', 'mobile', '5g'),
    'Édition': ('édition', 'éditeur', 'livre', 'presse', 'média'),
    'Audiovisuel': ('audiovisuel', 'cinéma', 'film', 'production audiovisuelle', 'musique', 'musical', 'jeux vidéo',
                    'animation'),
    'Finance': ('finance', 'financier', 'banque', 'bancaire', 'fintech', 'investissement'),
    'Assurance': ('assurance', 'assureur', 'mutuelle', 'prévoyance', 'insurtech'),
    'Immobilier': ('immobilier', 'foncier', 'promotion', 'gestion immobilière', 'proptech'),
    'Conseil': ('conseil', 'consulting', 'consultant', 'expertise', 'accompagnement', 'audit'),
    'Ingénierie': ('ingénierie', "bureau d'études", 'conception', 'architecture', 'bet'),
    'Design': ('design', 'création', 'graphisme', 'stylisme', 'designer'),
    'Communication': ('communication', 'publicité', 'marketing', 'agence', 'média', 'événementiel'),
    'RH': ('ressources humaines', 'recrutement', 'formation professionnelle', 'emploi', 'intérim'),
    'Santé': ('santé', 'médical', 'médecine', 'hospitalier', 'soins', 'ehpad', 'clinique'),
    'Social': ('social', 'médico-social', 'aide à domicile', 'handicap', 'insertion', 'ess'),
    'Santé animale': ('vétérinaire', 'animal', 'animalier', 'élevage'),
    'Culture': ('culture', 'culturel', 'artistique', 'art', 'patrimoine', 'musée', 'spectacle vivant'),
    'Sport': ('sport', 'sportif', 'équipement sportif', 'club', 'fédération'),
    'Environnement': ('environnement', 'écologie', 'déchet', 'recyclage', 'économie circulaire', 'biodiversité', 'eau'),
    'Énergie': ('énergie', 'énergétique', 'renouvelable', 'électricité', 'gaz', 'photovoltaïque', 'éolien', 'hydrogène',
                'décarbonation'),
    'R&D': ('recherche', 'développement', 'r&d', 'innovation', 'laboratoire', 'brevet', 'expérimentation'),
    'Formation': ('formation', 'enseignement', 'éducation', 'apprentissage', 'compétences', 'école'),
    'Associatif': ('association', 'associatif', 'ong', 'fondation', 'bénévole'),
    'Sécurité': ('sécurité', 'surveillance', 'gardiennage', 'protection'),
    'Services': ('services', 'prestation', 'entreprise de services'),
})

# Legal form to the entity-type labels used in subsidy eligibility.
# Looked up by exact name first, then by substring, longest form first.
LEGAL_FORM_TO_ENTITY: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    # Sociétés de capitaux
    ('SA', ('Entreprise', 'PME', 'ETI', 'GE', 'Société', 'Société commerciale')),
    ('SAS', ('Entreprise', 'PME', 'TPE', 'ETI', 'Startup', 'Société', 'Société commerciale')),
    ('SASU', ('Entreprise', 'PME', 'TPE', 'Startup', 'Société', 'Société commerciale')),
    # SARL et dérivés
    ('SARL', ('Entreprise', 'PME', 'TPE', 'Société', 'Société commerciale')),
    ('EURL', ('Entreprise', 'TPE', 'Société', 'Société commerciale')),
    ('SARLU', ('Entreprise', 'TPE', 'Société', 'Société commerciale')),
    # Sociétés de personnes
    ('SNC', ('Entreprise', 'PME', 'TPE', 'Société', 'Société de personnes')),
    ('SCS', ('Entreprise', 'PME', 'Société', 'Société de personnes')),
    ('SCA', ('Entreprise', 'PME', 'ETI', 'Société', 'Société de personnes')),
    # Entrepreneurs individuels
    ('EI', ('Entreprise', 'TPE', 'Indépendant', 'Entrepreneur individuel')),
    ('EIRL', ('Entreprise', 'TPE', 'Indépendant', 'Entrepreneur individuel')),
    ('Auto-entrepreneur', ('Entreprise', 'TPE', 'Indépendant', 'Micro-entreprise', 'Travailleur indépendant')),
    ('Micro-entreprise', ('Entreprise', 'TPE', 'Indépendant', 'Micro-entreprise', 'Travailleur indépendant')),
    ('Profession libérale', ('Entreprise', 'TPE', 'Indépendant', 'Profession libérale', 'Travailleur indépendant')),
    # Artisans et commerçants
    ('Artisan', ('Entreprise', 'TPE', 'Artisan', 'Indépendant', "Métiers d'art")),
    ('Commerçant', ('Entreprise', 'TPE', 'Commerçant', 'Commerce')),
    # Sociétés civiles
    ('SCI', ('Société civile', 'Société civile immobilière', 'Immobilier')),
    ('SCM', ('Société civile', 'Société civile de moyens', 'Profession libérale')),
    ('SCP', ('Société civile', 'Société civile professionnelle', 'Profession libérale')),
    ('SEL', ('Société', "Société d'exercice libéral", 'Profession libérale')),
    ('SELARL', ('Société', "Société d'exercice libéral", 'Profession libérale')),
    # Structures agricoles
    ('GAEC', ('Entreprise agricole', 'Exploitation agricole', 'Agriculture', 'Groupement agricole')),
    ('EARL', ('Entreprise agricole', 'Exploitation agricole', 'Agriculture', 'TPE', 'PME')),
    ('SCEA', ('Entreprise agricole', 'Exploitation agricole', 'Agriculture', 'Société civile')),
    ('Exploitant agricole', ('Entreprise agricole', 'Exploitation agricole', 'Agriculture', 'TPE', 'Indépendant')),
    # Coopératives et ESS
    ('SCOP', ('Entreprise', 'Coopérative', 'ESS', 'PME', 'Économie sociale et solidaire')),
    ('SCIC', ('Entreprise', 'Coopérative', 'ESS', 'Économie sociale et solidaire', 'Intérêt collectif')),
    ('Coopérative agricole', ('Coopérative', 'Agriculture', 'ESS', 'Coopérative agricole')),
    ('Coopérative', ('Coopérative', 'ESS', 'Économie sociale et solidaire')),
    ('CAE', ('Coopérative', "Coopérative d'activité et d'emploi", 'ESS', 'Entrepreneur salarié')),
    # Associations et fondations
    ('Association loi 1901', ('Association', 'Organisme à but non lucratif', 'OBNL', 'ESS')),
    ('Association', ('Association', 'Organisme à but non lucratif', 'OBNL', 'ESS')),
    ('Fondation', ('Fondation', 'Organisme à but non lucratif', 'OBNL', 'Mécénat')),
    ('Fonds de dotation', ('Fondation', 'Organisme à but non lucratif', 'OBNL', 'Mécénat')),
    ('Mutuelle', ('Mutuelle', 'ESS', 'Organisme complémentaire', 'Économie sociale et solidaire')),
    # Organismes publics et parapublics
    ('EPIC', ('Établissement public', 'Organisme public', 'EPIC')),
    ('EPA', ('Établissement public', 'Organisme public', 'EPA')),
    ('SEM', ("Société d'économie mixte", 'Organisme public', 'Collectivité')),
    ('SPL', ('Société publique locale', 'Organisme public', 'Collectivité')),
    ('GIP', ("Groupement d'intérêt public", 'Organisme public')),
    ('Régie', ('Organisme public', 'Collectivité', 'Régie')),
    # Groupements
    ('GIE', ('Groupement', 'GIE', "Groupement d'intérêt économique", 'Entreprise')),
    ('GEIE', ('Groupement', 'GEIE', "Groupement européen d'intérêt économique")),
    # Autres
    ('Société européenne', ('Entreprise', 'Société européenne', 'PME', 'ETI', 'GE')),
    ('Succursale', ('Entreprise', 'Succursale', 'Filiale')),
)

# Used when the profile declares no legal form, or an unknown one
DEFAULT_ENTITY_TYPES: Tuple[str, ...] = ('Entreprise', 'PME', 'TPE')
UNKNOWN_FORM_ENTITY_TYPES: Tuple[str, ...] = ('Entreprise',)

# Subsidy entity labels that accept any company
GENERIC_ENTITY_LABELS: Tuple[str, ...] = ('entreprise', 'société', 'tous', 'toutes entreprises')

# Funding agency prestige, first matching pattern wins
AGENCY_TIERS: Tuple[Tuple[str, int], ...] = (
    # National strategic agencies
    ('Bpifrance', 5),
    ('BPI France', 5),
    ('BPI', 5),
    ('ADEME', 5),
    ('Plan France 2030', 5),
    ('France 2030', 5),
    ('Agence Nationale de la Recherche', 5),
    ('ANR', 5),
    ('Caisse des Dépôts', 5),
    ('CDC', 5),
    ('Banque des Territoires', 5),
    # European Union
    ('Commission européenne', 5),
    ('Union européenne', 5),
    ('European Commission', 5),
    ('Horizon Europe', 5),
    ('Horizon 2020', 5),
    ('LIFE', 5),
    ('FEDER', 5),
    ('FSE', 5),
    ('FEADER', 5),
    ('FEAMP', 5),
    ('ERASMUS', 5),
    ('Digital Europe', 5),
    ('CEF', 5),
    ('EIC', 5),
    ('EIT', 5),
    # Sectoral agencies
    ('FranceAgriMer', 4),
    ('FRANCEAGRIMER', 4),
    ('ASP', 4),
    ("Agence de l'eau", 4),
    ('AESN', 4),
    ('AERMC', 4),
    ('Agence Bio', 4),
    ('ANACT', 4),
    ('ANAH', 4),
    ('ANIL', 4),
    ('AGEFIPH', 4),
    ('FIPHFP', 4),
    ('OSÉO', 4),
    ('Business France', 4),
    ('Atout France', 4),
    ('CNC', 4),
    ('CNM', 4),
    ('IFCIC', 4),
    ('INPI', 4),
    # Innovation ecosystem
    ('La French Tech', 3),
    ('French Tech', 3),
    ('Pôle de compétitivité', 3),
    # Regional authorities
    ('Conseil Régional', 3),
    ('Région', 3),
    ('Île-de-France', 3),
    ('Nouvelle-Aquitaine', 3),
    ('Auvergne-Rhône-Alpes', 3),
    ('Occitanie', 3),
    ('Hauts-de-France', 3),
    ('Grand Est', 3),
    ('Bretagne', 3),
    ('Normandie', 3),
    ('Pays de la Loire', 3),
    ('Centre-Val de Loire', 3),
    ('Bourgogne-Franche-Comté', 3),
    ("Provence-Alpes-Côte d'Azur", 3),
    ('PACA', 3),
    ('Corse', 3),
    ('Guadeloupe', 3),
    ('Martinique', 3),
    ('Guyane', 3),
    ('Réunion', 3),
    ('Mayotte', 3),
    # Local authorities and networks
    ('Conseil Départemental', 2),
    ('Département', 2),
    ('Métropole', 2),
    ('Communauté urbaine', 2),
    ("Communauté d'agglomération", 2),
    ('Chambre de Commerce', 2),
    ('CCI', 2),
    ('Chambre des Métiers', 2),
    ('CMA', 2),
    ("Chambre d'Agriculture", 2),
    ('France Active', 2),
    ('Initiative France', 2),
    ('Réseau Entreprendre', 2),
    ('BGE', 2),
    ('ADIE', 2),
    ('Pôle emploi', 2),
    ('France Travail', 2),
    ('OPCO', 2),
    ('DIRECCTE', 2),
    ('DREETS', 2),
    ('DREAL', 2),
    ('DDT', 2),
    ('Technopole', 2),
    ('Incubateur', 2),
    ('Accélérateur', 2),
    ('Station F', 2),
    # Municipal level
    ('Communauté de Communes', 1),
    ('Commune', 1),
    ('Mairie', 1),
    ('Ville', 1),
    ('EPCI', 1),
    ('Syndicat mixte', 1),
    ('PETR', 1),
    ('LEADER', 1),
    ('GAL', 1),
    ('Pays', 1),
)

# Maximum award thresholds for the amount boost, highest first
AMOUNT_BOOST_TIERS: Tuple[Tuple[float, int], ...] = (
    (10_000_000, 12),
    (1_000_000, 8),
    (500_000, 5),
    (100_000, 3),
)

# Words ignored when extracting search terms
STOP_WORDS = frozenset({
    'pour', 'avec', 'dans', 'sans', 'autre', 'plus', 'moins', 'très',
    'être', 'avoir', 'faire', 'tout', 'tous',
})

# Generic words ignored in free-text descriptions
GENERIC_DESCRIPTION_WORDS = frozenset({
    'entreprise', 'société', 'activité', 'notre', 'votre', 'cette', 'leurs',
})

# Phrases that turn a following exclusion keyword into a carve-out
NEGATION_MARKERS: Tuple[str, ...] = ('sauf', 'hors', "à l'exception", 'excepté', 'exclu', 'non éligible')
NEGATION_WINDOW = 50

# Certification substring -> extra search terms
CERTIFICATION_SEARCH_SYNONYMS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('bio', ('bio', 'biologique')),
    ('hve', ('hve', 'haute valeur environnementale')),
    ('rge', ('rge', 'reconnu garant environnement')),
)

# Certification substring(s) -> thematic keyword bundle
CERTIFICATION_KEYWORDS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (('bio', 'biologique'), ('biologique', 'bio', 'agriculture biologique', 'conversion bio', 'label bio')),
    (('hve',), ('haute valeur environnementale', 'hve', 'certification environnementale')),
    (('iso 14001', 'iso14001'), ('environnement', 'management environnemental', 'certification iso')),
    (('rge',), ('rénovation énergétique', 'efficacité énergétique', 'rge')),
)

# Description substring(s) -> thematic keyword cluster
DESCRIPTION_KEYWORDS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (('construction', 'bâtiment'), ('construction', 'bâtiment', 'btp', 'travaux')),
    (('écologique', 'durable'), ('écologique', 'durable', 'environnement', 'vert')),
    (('transformation',), ('transformation', 'valorisation', 'filière')),
)

# Website-intelligence sub-score tiers: (signal, minimum score, keywords)
SIGNAL_KEYWORD_TIERS: Tuple[Tuple[str, int, Tuple[str, ...]], ...] = (
    ('innovations', 50, ('innovation', 'r&d', 'recherche', 'développement')),
    ('innovations', 70, ('brevet', 'prototype', 'expérimentation', 'innovant')),
    ('sustainability', 50, ('environnement', 'transition écologique', 'rse', 'développement durable')),
    ('sustainability', 70, ('carbone', 'décarbonation', 'empreinte carbone', 'neutralité carbone', 'climat',
                            'prêt vert', 'financement vert', 'éco-prêt')),
    ('sustainability', 80, ('économie circulaire', 'recyclage', 'réemploi', 'biodiversité',
                            'industrie verte', 'transition industrielle', 'décarboner')),
    ('export', 50, ('export', 'international', 'développement international')),
    ('digital', 50, ('numérique', 'digital', 'transformation digitale')),
)

# Business-activity substring(s) -> secondary-sector cluster
ACTIVITY_KEYWORDS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (('construction', 'bâtiment', 'matériau'), ('construction', 'bâtiment', 'matériaux', 'btp')),
    (('bois', 'forestier', 'bambou'), ('bois', 'filière bois', 'forestier', 'biosourcé',
                                        'matériaux biosourcés', 'bois-construction', 'éco-matériaux')),
    (('énergie', 'renouvelable'), ('énergie', 'renouvelable', 'transition énergétique')),
)

# Sustainability-initiative substring(s) -> cluster
INITIATIVE_KEYWORDS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (('carbone',), ('carbone', 'bas carbone', 'neutralité carbone', 'décarbonation')),
    (('déchet', 'zéro'), ('déchets', 'économie circulaire', 'valorisation')),
)

# Project-type tag substring(s) -> canonical keywords
PROJECT_TYPE_KEYWORDS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (('innov',), ('innovation',)),
    (('export',), ('export', 'international')),
    (('embauche', 'recrutement'), ('emploi', 'recrutement')),
    (('formation',), ('formation', 'compétences')),
    (('écolog', 'environnement'), ('transition écologique',)),
)
