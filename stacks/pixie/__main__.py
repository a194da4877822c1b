from pixie_addon.pulumi_resources.pixie import Pixie

pixie = Pixie.autoload()
